from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from flask import Request, Response

from foodlib.base_class_entity import EntityBase, now_iso
from foodlib.constants import keys_structure
from foodlib.constants.constants import MIN_RATING, MAX_RATING
from foodlib.constants.status_codes import http200, http201
from foodlib.constants.substitute_keys import to_db
from foodlib.dishes import Dish
from foodlib.utils import auth as utils_auth, data as utils_data, db as utils_db, app as utils_app, exceptions
from foodlib.utils.logger import logger


def to_rating(value):
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)) or value != int(value):
        return None
    return int(value)


class Review(EntityBase):
    pk = keys_structure.reviews_pk
    sk = keys_structure.reviews_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'dish_id': lambda x: isinstance(x, str) and len(x) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'rating': lambda x: isinstance(x, int) and MIN_RATING <= x <= MAX_RATING,
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'review_text': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data', {})

        self.rating: int = to_rating(kwargs.get('rating'))
        self.review_text: str = kwargs.get('review_text')
        self.user_id: str = kwargs.get('user_id')
        self.dish_id: str = kwargs.get('dish_id')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'review'

    @classmethod
    def init_request_create(cls, request: Request):
        logger.info("init_request_create ::: started")
        auth_result = utils_auth.get_auth_result()
        request_body = utils_data.parse_raw_body(request)
        utils_data.substitute_keys(request_body, to_db)
        return cls(
            id_=str(uuid4()),
            user_id=auth_result['user_id'],
            request_data={'auth_result': auth_result},
            rating=request_body.get('rating'),
            review_text=request_body.get('review_text'),
            dish_id=request_body.get('dish_id')
        )

    @classmethod
    def init_request_update(cls, request: Request, review_id):
        logger.info("init_request_update ::: started")
        request_body = utils_data.parse_raw_body(request)
        utils_data.substitute_keys(request_body, to_db)
        c = cls.init_get_by_id(review_id)
        c.request_data = {'auth_result': utils_auth.get_auth_result()}
        if 'rating' in request_body:
            c.rating = to_rating(request_body['rating'])
        if 'review_text' in request_body:
            c.review_text = request_body['review_text']
        return c

    @classmethod
    def init_request_delete(cls, review_id):
        c = cls.init_get_by_id(review_id)
        c.request_data = {'auth_result': utils_auth.get_auth_result()}
        return c

    @classmethod
    def init_get_by_id(cls, review_id):
        logger.info("init_get_by_id ::: started")
        c = cls(id_=review_id)
        c.__init__(**c._get_db_item())
        return c

    def _check_author(self):
        if self.request_data.get('auth_result', {}).get('user_id') != self.user_id:
            raise exceptions.AccessDenied('Only the author of the review can change it')

    @staticmethod
    def get_db_reviews(filter_expression=None) -> List[Dict]:
        db_records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.reviews_pk),
            filter_expression=filter_expression
        )
        return sorted(db_records, key=lambda record: (record.get('date_created', ''), record.get('id_', '')))

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_reviews(user_id: str = None, dish_id: str = None) -> Response:
        if user_id is not None:
            filter_expression = Attr('user_id').eq(user_id)
        elif dish_id is not None:
            filter_expression = Attr('dish_id').eq(dish_id)
        else:
            filter_expression = None
        reviews = [Review(**record).to_ui() for record in Review.get_db_reviews(filter_expression)]
        logger.info(f"endpoint_get_reviews ::: returning {len(reviews)} reviews, {user_id=}, {dish_id=}")
        return utils_app.json_response(data=reviews, status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_review(self) -> Response:
        return utils_app.json_response(data=self.to_ui(), status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_review(self) -> Response:
        if not self.dish_id or not isinstance(self.dish_id, str):
            raise exceptions.MandatoryFieldsAreNotFilled('Review must reference a dish')
        try:
            Dish.init_get_by_id(self.dish_id)
        except exceptions.RecordNotFound:
            raise exceptions.RecordNotFound(f'Dish {self.dish_id} not found')
        self._create_db_record()
        return utils_app.json_response(data=self.to_ui(), message='Review successfully added', status_code=http201)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update_review(self) -> Response:
        self._check_author()
        self._update_db_record(validate=True)
        return utils_app.json_response(data=self.to_ui(), message='Review was successfully updated',
                                       status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete_review(self) -> Response:
        self._check_author()
        self._delete_db_record()
        return utils_app.json_response(data={'id': self.id_}, message='Review was successfully deleted',
                                       status_code=http200)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(review_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'rating': self.rating,
            'review_text': self.review_text,
            'user_id': self.user_id,
            'dish_id': self.dish_id,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }
