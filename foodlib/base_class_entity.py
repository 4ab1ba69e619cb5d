from datetime import datetime
from typing import Tuple, Dict, List, Optional

from foodlib.constants.substitute_keys import from_db, to_db
from foodlib.utils import db as utils_db, exceptions
from foodlib.utils.data import substitute_keys
from foodlib.utils.logger import logger


def now_iso() -> str:
    return datetime.now().isoformat(timespec="microseconds")


class EntityBase:
    """
    Base of the stored resources.
    Children set pk/sk templates and three validator maps:
    required_immutable (checked on create only), required_mutable and optional (checked on create
    and used as the update whitelist)
    """

    pk = None
    sk = None

    required_immutable_fields_validation = {}
    required_mutable_fields_validation = {}
    optional_fields_validation = {}

    def __init__(self, id_):
        self.id_: str = id_
        self.record_type: str = ''
        self.request_data: Optional[Dict] = None
        self.db_record: dict = {}

    def _get_pk_sk(self) -> Tuple[str, str]:
        """
        :return:
        partkey, sortkey of the record, children format sk with their id
        """
        return self.pk, self.sk

    def _get_db_item(self) -> Dict:
        return utils_db.get_db_item(*self._get_pk_sk())

    def _to_dict(self) -> Dict:
        """
        Stored attributes of the entity in db naming, children list their own fields
        """
        return {'id_': self.id_}

    def _init_db_record(self) -> None:
        partkey, sortkey = self._get_pk_sk()
        self.db_record = {
            **self._to_dict(),
            'partkey': partkey,
            'sortkey': sortkey,
            'record_type': self.record_type
        }

    @staticmethod
    def raise_validation_error(key):
        message = f'Validation error occurred while validating field={key}'
        logger.error(f"raise_validation_error ::: {message}")
        raise exceptions.ValidationException(message)

    def _validate_mandatory_fields(self):
        required = {**self.required_immutable_fields_validation, **self.required_mutable_fields_validation}
        for key, is_valid in required.items():
            if is_valid(self.db_record.get(key)) is False:
                self.raise_validation_error(key)

    def _validate_optional_fields(self):
        # absent optional fields are fine, present ones must pass
        for key, is_valid in self.optional_fields_validation.items():
            value = self.db_record.get(key)
            if value is not None and is_valid(value) is False:
                self.raise_validation_error(key)

    def _validate_db_record(self):
        """
        Builds db_record from the current attributes and raises ValidationException on the first bad field
        """
        self._init_db_record()
        self._validate_mandatory_fields()
        self._validate_optional_fields()

    def _get_validated_update_dict(self) -> Dict:
        """
        :return:
        whitelisted attributes which pass their validators,
        unset ones are skipped and invalid ones are dropped with a warning
        """
        validators = {**self.required_mutable_fields_validation, **self.optional_fields_validation}
        update_dict = {}
        for key, value in self._to_dict().items():
            if key not in validators or value is None:
                continue
            if validators[key](value) is True:
                update_dict[key] = value
            else:
                logger.warning(f'_get_validated_update_dict ::: {key=}, {value=} is not valid, skipping it')
        return update_dict

    def _create_db_record(self, only_if_new: bool = True) -> None:
        self._validate_db_record()
        utils_db.put_db_record(self.db_record, only_if_new=only_if_new)
        logger.info(f"_create_db_record ::: {self.record_type} {self.id_} created, "
                    f"partkey={self.db_record['partkey']}")

    def _update_fields_whitelist(self) -> List:
        return list(self.required_mutable_fields_validation) + list(self.optional_fields_validation)

    def _update_db_record(self, validate: bool = False):
        """
        Writes the mutable fields back, date_updated and updated_by are refreshed first
        :param validate: raise on an invalid field instead of leaving it out of the update
        """
        partkey, sortkey = self._get_pk_sk()
        self.date_updated = now_iso()
        if self.request_data is not None:
            self.updated_by = self.request_data.get('auth_result', {}).get('user_id')
        if validate:
            self._validate_db_record()

        fields = self._get_validated_update_dict()
        substitute_keys(dict_to_process=fields, base_keys=to_db)
        utils_db.update_db_record(
            key={'partkey': partkey, 'sortkey': sortkey},
            update_body=fields,
            allowed_attrs_to_update=self._update_fields_whitelist(),
            allowed_attrs_to_delete=[]
        )
        logger.info(f"_update_db_record ::: {self.record_type} {self.id_} updated, fields={list(fields)}")

    def _delete_db_record(self):
        partkey, sortkey = self._get_pk_sk()
        utils_db.delete_db_record({'partkey': partkey, 'sortkey': sortkey})
        logger.info(f"_delete_db_record ::: {self.record_type} {self.id_} deleted")

    def _to_ui(self) -> Dict:
        ui_item = self._to_dict()
        substitute_keys(dict_to_process=ui_item, base_keys=from_db)
        return ui_item

    def to_ui(self):
        return self._to_ui()
