from typing import Tuple, List, Dict

from boto3.dynamodb.conditions import Key
from flask import Response

from foodlib.base_class_entity import EntityBase, now_iso
from foodlib.constants import keys_structure
from foodlib.constants.constants import EMAIL_PATTERN, PHONE_PATTERN, ROLES
from foodlib.constants.status_codes import http200
from foodlib.utils import app as utils_app, db as utils_db, exceptions
from foodlib.utils.auth import hash_password
from foodlib.utils.logger import logger


class User(EntityBase):
    pk = keys_structure.users_pk
    sk = keys_structure.users_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'email': lambda x: isinstance(x, str) and EMAIL_PATTERN.match(x) is not None,
        'role': lambda x: x in ROLES,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'username': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'mobile_number': lambda x: isinstance(x, str) and PHONE_PATTERN.match(x) is not None,
        'password_hash': lambda x: isinstance(x, str),
        'date_updated': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.username: str = kwargs.get('username')
        self.email: str = kwargs.get('email').strip().lower() if isinstance(kwargs.get('email'), str) \
            else kwargs.get('email')
        self.mobile_number: str = kwargs.get('mobile_number')
        self.role: str = kwargs.get('role')
        self.password_hash: str = kwargs.get('password_hash')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'user'

    @classmethod
    def init_by_id(cls, id_):
        logger.info("init_by_id ::: started")
        c = cls(id_)
        c.__init__(**c._get_db_item())
        return c

    @classmethod
    def init_by_email(cls, email: str):
        logger.info("init_by_email ::: started")
        email_record = utils_db.get_db_item(
            partkey=keys_structure.user_emails_pk,
            sortkey=keys_structure.user_emails_sk.format(email=str(email).strip().lower())
        )
        return cls.init_by_id(email_record['user_id'])

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_users() -> Response:
        user_db_records: list = utils_db.query_items_paged(Key('partkey').eq(keys_structure.users_pk))
        users: List[Dict] = [User(**record).to_ui() for record in
                             sorted(user_db_records, key=lambda record: record.get('date_created', ''))]
        return utils_app.json_response(data=users, status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_user(self) -> Response:
        return utils_app.json_response(data=self.to_ui(), status_code=http200)

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def _get_email_lock_key(self) -> Dict:
        return {
            'partkey': keys_structure.user_emails_pk,
            'sortkey': keys_structure.user_emails_sk.format(email=self.email)
        }

    def _create_db_record(self, only_if_new: bool = True) -> None:
        """
        Email lock record goes first, the conditional write keeps emails unique
        """
        self._validate_db_record()
        try:
            utils_db.put_db_record(
                {**self._get_email_lock_key(), 'user_id': self.id_, 'record_type': 'user_email'},
                only_if_new=True
            )
        except exceptions.DuplicateRecord:
            raise exceptions.DuplicateRecord('User with this email already exists')
        try:
            EntityBase._create_db_record(self, only_if_new=only_if_new)
        except Exception:
            logger.error(f"_create_db_record ::: user {self.id_} was not created, releasing email {self.email}")
            utils_db.delete_db_record(self._get_email_lock_key())
            raise

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'username': self.username,
            'email': self.email,
            'mobile_number': self.mobile_number,
            'role': self.role,
            'password_hash': self.password_hash,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }
