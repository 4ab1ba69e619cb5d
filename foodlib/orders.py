from copy import deepcopy
from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from flask import Request, Response

from foodlib.base_class_entity import EntityBase, now_iso
from foodlib.constants import keys_structure
from foodlib.constants.constants import ORDER_STATUSES, ORDER_STATUS_PENDING, ROLE_ADMIN
from foodlib.constants.status_codes import http200, http201
from foodlib.constants.substitute_keys import to_db, from_db
from foodlib.dishes import Dish
from foodlib.utils import auth as utils_auth, data as utils_data, db as utils_db, app as utils_app, exceptions
from foodlib.utils.exceptions import OrderNotFound
from foodlib.utils.logger import logger


def is_filled_str(value) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def to_quantity(value):
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        return None
    if value != int(value) or value < 1:
        return None
    return int(value)


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'order_items': lambda x: isinstance(x, list) and len(x) > 0,
        'total_amount': lambda x: isinstance(x, Decimal) and x >= 0,
        'shipping_address': is_filled_str,
        'billing_address': is_filled_str,
        'order_status': lambda x: x in ORDER_STATUSES,
        'status_history': lambda x: isinstance(x, list),
        "date_updated": lambda x: isinstance(x, str),
        "updated_by": lambda x: isinstance(x, str)
    }

    def __init__(self, id_, user_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data', {})
        self.dish_details: Dict = {}

        self.user_id: str = user_id
        self.order_items: list = kwargs.get('order_items', [])
        self.total_amount: Decimal = utils_data.to_decimal(kwargs.get('total_amount'))
        self.shipping_address: str = kwargs.get('shipping_address')
        self.billing_address: str = kwargs.get('billing_address')
        self.order_status: str = kwargs.get('order_status') or ORDER_STATUS_PENDING
        self.status_history: list = kwargs.get('status_history') or []
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.updated_by: str = kwargs.get('updated_by') or self.request_data.get('auth_result', {}).get('user_id')
        self.record_type = 'order'

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
            order_items=request_body.get('order_items'),
            shipping_address=request_body.get('shipping_address'),
            billing_address=request_body.get('billing_address')
        )

    @classmethod
    def init_request_get_order(cls, order_id):
        logger.info("init_request_get_order ::: started")
        c = cls(id_=order_id, request_data={'auth_result': utils_auth.get_auth_result()})
        return c

    @classmethod
    def init_request_update(cls, request: Request, order_id):
        logger.info("init_request_update ::: started")
        request_body = utils_data.parse_raw_body(request)
        utils_data.substitute_keys(request_body, to_db)
        c = cls.init_request_get_order(order_id)
        c.requested_status = request_body.get('order_status')
        return c

    def _load_db_record(self):
        request_data = self.request_data
        try:
            self.__init__(**self._get_db_item(), request_data=request_data)
        except exceptions.RecordNotFound:
            raise OrderNotFound('Requested order not found')

    def _check_read_access(self):
        auth_result = self.request_data.get('auth_result', {})
        if auth_result.get('role') != ROLE_ADMIN and auth_result.get('user_id') != self.user_id:
            raise OrderNotFound('Requested order not found')

    def fill_items_details(self, dish_cache: Dict = None):
        """
        Live dish details next to the snapshotted line items, None when the dish was deleted
        """
        dish_cache = {} if dish_cache is None else dish_cache
        for item in self.order_items:
            dish_id = item.get('dish_id')
            if dish_id not in dish_cache:
                dish_cache[dish_id] = Dish.get_details_or_none(dish_id)
            self.dish_details[dish_id] = dish_cache[dish_id]

    def _resolve_order_items(self):
        if not isinstance(self.order_items, list) or len(self.order_items) == 0:
            raise exceptions.ValidationException('Order must contain at least one item')

        resolved_items = []
        unavailable = []
        for item in self.order_items:
            if not isinstance(item, dict):
                raise exceptions.ValidationException('Order items must be objects with dish and quantity')
            dish_id = item.get('dish') or item.get('dishId') or item.get('dish_id')
            quantity = to_quantity(item.get('quantity'))
            if not isinstance(dish_id, str) or not dish_id:
                raise exceptions.ValidationException('Every order item must reference a dish')
            if quantity is None:
                raise exceptions.ValidationException(f'Quantity of dish {dish_id} must be a positive integer')
            try:
                dish: Dish = Dish.init_get_by_id(dish_id)
            except exceptions.RecordNotFound:
                unavailable.append(dish_id)
                continue
            if not dish.is_available_right_now():
                unavailable.append(dish_id)
                continue
            # price is frozen at order time, later dish price changes don't touch the order
            resolved_items.append({
                'dish_id': dish.id_,
                'dish_name': dish.dish_name,
                'quantity': quantity,
                'price': dish.price
            })
            self.dish_details[dish.id_] = dish.to_ui()

        if unavailable:
            raise exceptions.SomeItemsAreNotAvailable(
                f"Some items currently unavailable, please delete them from cart and recreate the order: "
                f"{', '.join(unavailable)}")

        self.order_items = resolved_items
        self.total_amount = sum(
            (item['price'] * item['quantity'] for item in resolved_items), Decimal('0')
        ).quantize(Decimal('1.00'))

    def _append_status_history(self, status: str):
        self.status_history.append({
            'status': status,
            'date': now_iso(),
            'updated_by': self.request_data.get('auth_result', {}).get('user_id')
        })

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_order(self) -> Response:
        self._resolve_order_items()
        self.order_status = ORDER_STATUS_PENDING
        self.status_history = []
        self._append_status_history(ORDER_STATUS_PENDING)
        self._create_db_record()
        logger.info(f"endpoint_create_order ::: order {self.id_} of user {self.user_id} for {self.total_amount}")
        return utils_app.json_response(data=self.to_ui(), message='Order placed successfully',
                                       status_code=http201)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        self._load_db_record()
        self._check_read_access()
        self.fill_items_details()
        return utils_app.json_response(data=self.to_ui(), status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update_order(self) -> Response:
        requested_status = getattr(self, 'requested_status', None)
        if requested_status not in ORDER_STATUSES:
            raise exceptions.ValidationException(f"orderStatus must be one of {', '.join(ORDER_STATUSES)}")
        self._load_db_record()

        current_index = ORDER_STATUSES.index(self.order_status)
        requested_index = ORDER_STATUSES.index(requested_status)
        if requested_index < current_index:
            raise exceptions.InvalidStatusTransition(
                f'Order status cannot move back from {self.order_status} to {requested_status}')
        if requested_index == current_index:
            logger.info(f"endpoint_update_order ::: order {self.id_} is already {self.order_status}")
            return utils_app.json_response(data=self.to_ui(), message=f'Order is already {self.order_status}',
                                           status_code=http200)

        self.order_status = requested_status
        self._append_status_history(requested_status)
        self._update_db_record()
        logger.info(f"endpoint_update_order ::: order {self.id_} moved to {self.order_status}")
        return utils_app.json_response(data=self.to_ui(), message='Order status was successfully updated',
                                       status_code=http200)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete_order(self) -> Response:
        self._load_db_record()
        if self.request_data.get('auth_result', {}).get('user_id') != self.user_id:
            raise exceptions.AccessDenied('Only the owner of the order can cancel it')
        if self.order_status != ORDER_STATUS_PENDING:
            raise exceptions.OrderCannotBeCancelled(
                f'Order can be cancelled only while it is {ORDER_STATUS_PENDING}, current status {self.order_status}')
        self._delete_db_record()
        return utils_app.json_response(data={'id': self.id_}, message='Order was successfully cancelled',
                                       status_code=http200)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'order_items': self.order_items,
            'total_amount': self.total_amount,
            'shipping_address': self.shipping_address,
            'billing_address': self.billing_address,
            'order_status': self.order_status,
            'status_history': self.status_history,
            'date_created': self.date_created,
            'date_updated': self.date_updated,
            'updated_by': self.updated_by
        }

    def _to_ui(self):
        item = deepcopy(self._to_dict())
        if self.dish_details:
            for order_item in item['order_items']:
                order_item['dish_details'] = self.dish_details.get(order_item.get('dish_id'))
        utils_data.substitute_records(item['order_items'], from_db)
        utils_data.substitute_records(item['status_history'], from_db)
        utils_data.substitute_keys(dict_to_process=item, base_keys=from_db)
        return item


def get_db_orders(user_id: str = None) -> List[Dict]:
    filter_expression = Attr('user_id').eq(user_id) if user_id else None
    db_records = utils_db.query_items_paged(
        key_condition_expression=Key('partkey').eq(Order.pk),
        filter_expression=filter_expression
    )
    return sorted(db_records, key=lambda record: record.get('date_created', ''), reverse=True)


def orders_to_ui(db_records: List[Dict]) -> List[Dict]:
    dish_cache = {}
    orders = []
    for record in db_records:
        order = Order(**record)
        order.fill_items_details(dish_cache)
        orders.append(order.to_ui())
    return orders


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_orders(user_id: str = None) -> Response:
    """
    All orders for Admin, orders of one user when user_id is given
    newest first
    """
    auth_result = utils_auth.get_auth_result()
    if user_id is not None and auth_result.get('role') != ROLE_ADMIN and auth_result.get('user_id') != user_id:
        raise exceptions.AccessDenied("You don't have permissions to access orders of another user")
    orders = orders_to_ui(get_db_orders(user_id))
    logger.info(f"endpoint_get_orders ::: returning {len(orders)} orders, {user_id=}")
    return utils_app.json_response(data=orders, status_code=http200)
