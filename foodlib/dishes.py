from decimal import Decimal
from typing import List, Dict, Tuple
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from flask import Request, Response

from foodlib.base_class_entity import EntityBase, now_iso
from foodlib.constants import keys_structure
from foodlib.constants.status_codes import http200, http201
from foodlib.constants.substitute_keys import to_db
from foodlib.images import is_valid_cover_image
from foodlib.utils import auth as utils_auth, data as utils_data, db as utils_db, app as utils_app, exceptions
from foodlib.utils.logger import logger


def is_filled_str(value) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


class Dish(EntityBase):
    pk = keys_structure.dishes_pk
    sk = keys_structure.dishes_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'created_by': lambda x: isinstance(x, str),
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'dish_name': is_filled_str,
        'description': is_filled_str,
        'cuisine': is_filled_str,
        'price': lambda x: isinstance(x, Decimal) and x >= 0,
        'is_available': lambda x: isinstance(x, bool),
        'cover_image': is_valid_cover_image,
        "date_updated": lambda x: isinstance(x, str),
        "updated_by": lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data', {})

        self.dish_name: str = kwargs.get('dish_name')
        self.description: str = kwargs.get('description')
        self.cuisine: str = kwargs.get('cuisine')
        self.price: Decimal = utils_data.to_decimal(kwargs.get('price'))
        self.is_available: bool = kwargs.get('is_available', True)
        self.cover_image: str = kwargs.get('cover_image')
        self.created_by: str = kwargs.get('created_by') or self.request_data.get('auth_result', {}).get('user_id')
        self.updated_by: str = kwargs.get('updated_by') or self.request_data.get('auth_result', {}).get('user_id')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'dish'

    @classmethod
    def init_request_create(cls, request: Request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.parse_raw_body(request)
        utils_data.substitute_keys(request_body, to_db)
        # audit fields come from the token and the clock only
        for server_key in (*cls.required_immutable_fields_validation, 'date_updated', 'updated_by'):
            request_body.pop(server_key, None)
        return cls(id_=str(uuid4()), request_data={'auth_result': utils_auth.get_auth_result()}, **request_body)

    @classmethod
    def init_request_update(cls, request: Request, dish_id):
        """
        Request body is applied over the stored record, so partial updates keep the other fields
        """
        logger.info("init_request_update ::: started")
        request_body = utils_data.parse_raw_body(request)
        utils_data.substitute_keys(request_body, to_db)
        for immutable_key in cls.required_immutable_fields_validation:
            request_body.pop(immutable_key, None)
        db_record = cls.init_get_by_id(dish_id).db_record
        return cls(**{**db_record, **request_body, 'request_data': {'auth_result': utils_auth.get_auth_result()}})

    @classmethod
    def init_get_by_id(cls, dish_id):
        logger.info("init_get_by_id ::: started")
        c = cls(id_=dish_id)
        db_record = c._get_db_item()
        c.__init__(**db_record)
        c.db_record = db_record
        return c

    @classmethod
    def get_details_or_none(cls, dish_id) -> Dict:
        """
        Live dish lookup for records referencing a dish which could be deleted in the meantime
        """
        if not dish_id:
            return None
        try:
            return cls.init_get_by_id(dish_id).to_ui()
        except exceptions.RecordNotFound:
            logger.warning(f"get_details_or_none ::: dish {dish_id} does not exist anymore")
            return None

    @staticmethod
    def get_all_db_records() -> List[Dict]:
        dish_db_records: List[Dict] = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.dishes_pk)
        )
        return sorted(dish_db_records, key=lambda record: (record.get('date_created', ''), record.get('id_', '')))

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_dishes() -> Response:
        dishes: List[Dict] = [Dish(**record).to_ui() for record in Dish.get_all_db_records()]
        logger.info(f"endpoint_get_dishes ::: returning {len(dishes)} dishes")
        return utils_app.json_response(data=dishes, status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_dish(self) -> Response:
        return utils_app.json_response(data=self.to_ui(), status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_dish(self) -> Response:
        self._create_db_record()
        return utils_app.json_response(data=self.to_ui(), message='Dish successfully created', status_code=http201)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update_dish(self) -> Response:
        self._update_db_record(validate=True)
        return utils_app.json_response(data=self.to_ui(), message='Dish was successfully updated',
                                       status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete_dish(self) -> Response:
        # orders and reviews keep the dangling reference, they render it as an unknown dish
        self._delete_db_record()
        return utils_app.json_response(data={'id': self.id_}, message='Dish was successfully deleted',
                                       status_code=http200)

    def is_available_right_now(self) -> bool:
        return self.is_available is True

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(dish_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'dish_name': self.dish_name,
            'description': self.description,
            'cuisine': self.cuisine,
            'price': self.price,
            'is_available': self.is_available,
            'cover_image': self.cover_image,
            "date_created": self.date_created,
            "date_updated": self.date_updated,
            'created_by': self.created_by,
            'updated_by': self.updated_by
        }
