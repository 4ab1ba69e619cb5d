from decimal import Decimal
from typing import List, Dict

from foodlib.client.api import ApiClient
from foodlib.client.cart import CartStore
from foodlib.client.exceptions import ActionRejected, FormValidationError, NotLoggedIn
from foodlib.client.pagination import PagedListView
from foodlib.client.state import AppState, SESSION_KEY
from foodlib.constants.constants import ORDER_STATUSES, ORDER_STATUS_PENDING
from foodlib.utils.logger import logger

USER_ORDERS_ROUTE = '/user/orders'
ADMIN_ORDERS_PAGE_SIZE = 5


def get_session_user_id(state: AppState) -> str:
    session_user = state.get(SESSION_KEY)
    if not isinstance(session_user, dict) or not session_user.get('userId'):
        raise NotLoggedIn('Please log in to continue')
    return session_user['userId']


def to_amount(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal('1.00'))


class OrderWorkflow:
    """
    Turns the cart into an order
    """

    def __init__(self, api: ApiClient, state: AppState, cart: CartStore = None):
        self.api = api
        self.state = state
        self.cart = cart or CartStore(state)

    def display_total(self, lines: List[Dict] = None) -> Decimal:
        """
        Total of the cart against freshly fetched prices, lines of deleted dishes count as zero
        """
        lines = self.cart.load() if lines is None else lines
        prices = {dish['id']: dish.get('price') for dish in self.api.get('/dish/getAllDishes') or []}
        return sum(
            (to_amount(prices[line['dishId']]) * line['quantity'] for line in lines
             if prices.get(line['dishId']) is not None),
            Decimal('0.00')
        )

    def place_order(self, shipping_address: str, billing_address: str) -> Dict:
        errors = {}
        if not isinstance(shipping_address, str) or not shipping_address.strip():
            errors['shippingAddress'] = 'Shipping address is required'
        if not isinstance(billing_address, str) or not billing_address.strip():
            errors['billingAddress'] = 'Billing address is required'
        if errors:
            raise FormValidationError(errors)

        lines = self.cart.load()
        if not lines:
            raise ActionRejected('Your cart is empty')
        user_id = get_session_user_id(self.state)

        display_total = self.display_total(lines)
        order = self.api.post('/order/addOrder', {
            'orderItems': [{'dish': line['dishId'], 'quantity': line['quantity']} for line in lines],
            'shippingAddress': shipping_address.strip(),
            'billingAddress': billing_address.strip()
        })
        server_total = to_amount(order.get('totalAmount', 0))
        if server_total != display_total:
            logger.warning(f'place_order ::: displayed total {display_total} differs from the order total '
                           f'{server_total}, a price changed in between, order total is used')
        self.cart.clear()
        logger.info(f"place_order ::: order {order.get('id')} placed by {user_id}")
        return {'order': order, 'redirect': USER_ORDERS_ROUTE}


def tracking(order: Dict) -> Dict:
    """
    Steps of the order tracker, every step up to the current one is completed
    """
    status = order.get('orderStatus')
    current_index = ORDER_STATUSES.index(status) if status in ORDER_STATUSES else -1
    return {
        'currentIndex': current_index,
        'steps': [
            {'status': step, 'completed': index <= current_index, 'current': index == current_index}
            for index, step in enumerate(ORDER_STATUSES)
        ]
    }


class UserOrders:
    def __init__(self, api: ApiClient, state: AppState):
        self.api = api
        self.state = state
        self.orders: List[Dict] = []

    def load(self) -> List[Dict]:
        self.orders = self.api.get(f'/order/getOrdersByUserId/{get_session_user_id(self.state)}') or []
        return self.orders

    def cancel(self, order: Dict) -> List[Dict]:
        if order.get('orderStatus') != ORDER_STATUS_PENDING:
            raise ActionRejected(f'Only {ORDER_STATUS_PENDING} orders can be cancelled, '
                                 f"this one is {order.get('orderStatus')}")
        self.api.delete(f"/order/deleteOrder/{order['id']}")
        self.orders = [item for item in self.orders if item.get('id') != order['id']]
        return self.orders


class AdminOrders(PagedListView):
    def __init__(self, api: ApiClient, page_size: int = ADMIN_ORDERS_PAGE_SIZE):
        PagedListView.__init__(self, page_size, ascending=False)
        self.api = api

    @property
    def orders(self) -> List[Dict]:
        return self.items

    def load(self) -> List[Dict]:
        self.set_items(self.api.get('/order/getAllOrders'))
        return self.items

    def matches(self, item: Dict, term: str) -> bool:
        return any(term in str(item.get(key) or '').lower()
                   for key in ('id', 'user', 'orderStatus', 'shippingAddress'))

    def update_status(self, order: Dict, status: str) -> Dict:
        if status not in ORDER_STATUSES:
            raise ActionRejected(f"Order status must be one of {', '.join(ORDER_STATUSES)}")
        current_status = order.get('orderStatus')
        if current_status in ORDER_STATUSES and ORDER_STATUSES.index(status) < ORDER_STATUSES.index(current_status):
            raise ActionRejected(f'Order status cannot move back from {current_status} to {status}')
        updated = self.api.put(f"/order/updateOrder/{order['id']}", {'orderStatus': status})
        self.set_items([updated if item.get('id') == updated.get('id') else item for item in self.items])
        return updated
