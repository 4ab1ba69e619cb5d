from io import BytesIO
from urllib.parse import urlsplit

import pytest

from foodlib.client.admin import DishForm
from foodlib.client.api import ApiClient
from foodlib.client.cart import CartStore
from foodlib.client.catalog import CatalogQuery
from foodlib.client.exceptions import ApiError
from foodlib.client.orders import OrderWorkflow, UserOrders, AdminOrders, USER_ORDERS_ROUTE
from foodlib.client.reviews import MyReviews, ReviewAggregation
from foodlib.client.session import AuthSession, ADMIN_HOME_ROUTE, USER_HOME_ROUTE
from foodlib.client.state import AppState, CART_KEY
from test.utils.fixtures import TEST_COVER_IMAGE, image_bytes


class FlaskResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self.response = response

    def json(self):
        body = self.response.get_json(silent=True)
        if body is None:
            raise ValueError('response is not JSON')
        return body


class FlaskSession:
    """
    requests.Session stand-in which sends the client calls to the flask test client
    """

    def __init__(self, flask_client):
        self.flask_client = flask_client

    def request(self, method, url, headers=None, data=None, files=None, timeout=None):
        if files:
            data = {field: (BytesIO(content), file_name, mime_type)
                    for field, (file_name, content, mime_type) in files.items()}
        return FlaskResponse(self.flask_client.open(urlsplit(url).path, method=method, headers=headers, data=data))


@pytest.fixture
def client_app(flask_client):
    state = AppState()
    api = ApiClient(base_url='http://testserver', state=state, session=FlaskSession(flask_client))
    cart = CartStore(state)
    return state, api, cart, AuthSession(api, state, cart)


def test_order_flow(client_app):
    state, api, cart, auth_session = client_app

    auth_session.register('boss', 'boss@example.com', '0123456789', 'password123', 'password123', 'Admin')
    auth_session.login('boss@example.com', 'password123')
    assert auth_session.home_route() == ADMIN_HOME_ROUTE

    form = DishForm(api)
    form.upload_cover_image(image_bytes('PNG'), 'dish.png', 'image/png')
    assert form.values['coverImage'].startswith('data:image/png;base64,')
    dish = form.submit({
        'dishName': 'Paneer Tikka',
        'description': 'Grilled cottage cheese',
        'cuisine': 'Indian',
        'price': 100,
        'coverImage': TEST_COVER_IMAGE
    })
    auth_session.logout()

    auth_session.register('eater', 'eater@example.com', '0123456789', 'password123', 'password123', 'User')
    auth_session.login('eater@example.com', 'password123')
    assert auth_session.home_route() == USER_HOME_ROUTE

    catalog = CatalogQuery(api, cart=cart)
    catalog.load()
    assert [item['id'] for item in catalog.search('paneer')] == [dish['id']]
    catalog.add_to_cart(catalog.dishes[0], 2)

    result = OrderWorkflow(api, state, cart).place_order('Baker Street 221b', 'Baker Street 221b')
    assert result['redirect'] == USER_ORDERS_ROUTE
    assert result['order']['totalAmount'] == 200
    assert result['order']['orderStatus'] == 'Pending'
    assert state.get(CART_KEY) == []

    my_reviews = MyReviews(api, state)
    my_reviews.submit(dish['id'], 5, 'Best in town')
    reviews = ReviewAggregation(api).load(dish['id'])
    assert [(review['dishName'], review['username']) for review in reviews] == [('Paneer Tikka', 'eater')]

    user_orders = UserOrders(api, state)
    orders = user_orders.load()
    assert len(orders) == 1
    assert user_orders.cancel(orders[0]) == []
    assert UserOrders(api, state).load() == []


def test_admin_moves_order_forward(client_app):
    state, api, cart, auth_session = client_app
    auth_session.register('boss', 'boss@example.com', '0123456789', 'password123', 'password123', 'Admin')
    auth_session.register('eater', 'eater@example.com', '0123456789', 'password123', 'password123', 'User')

    auth_session.login('boss@example.com', 'password123')
    dish = DishForm(api).submit({
        'dishName': 'Sushi', 'description': 'Fresh', 'cuisine': 'Japanese', 'price': 7.5,
        'coverImage': TEST_COVER_IMAGE
    })
    auth_session.logout()

    auth_session.login('eater@example.com', 'password123')
    cart.add_item(dish, 3)
    order = OrderWorkflow(api, state, cart).place_order('Main St', 'Main St')['order']
    assert order['totalAmount'] == 22.5
    auth_session.logout()

    auth_session.login('boss@example.com', 'password123')
    admin_orders = AdminOrders(api)
    admin_orders.load()
    assert admin_orders.update_status(admin_orders.orders[0], 'Accepted')['orderStatus'] == 'Accepted'
    auth_session.logout()

    auth_session.login('eater@example.com', 'password123')
    with pytest.raises(ApiError) as error:
        api.delete(f"/order/deleteOrder/{order['id']}")
    assert error.value.status_code == 400


def test_duplicate_registration_message(client_app):
    _, _, _, auth_session = client_app
    auth_session.register('first', 'same@example.com', '0123456789', 'password123', 'password123', 'User')
    with pytest.raises(ApiError) as error:
        auth_session.register('second', 'same@example.com', '0123456789', 'password123', 'password123', 'User')
    assert error.value.status_code == 409
    assert error.value.message == 'User with this email already exists'
