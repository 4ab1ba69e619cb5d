import os
from io import BytesIO

from PIL import Image

from foodlib.constants.constants import ROLE_USER
from test.utils.request_utils import make_request, response_body

TEST_PASSWORD = 'password123'
TEST_PHONE = '0123456789'
TEST_COVER_IMAGE = 'https://example.com/images/dish.jpg'


def register_user(flask_client, email: str, role: str = ROLE_USER, username: str = 'tester',
                  password: str = TEST_PASSWORD, phone: str = TEST_PHONE):
    return make_request(flask_client, endpoint='/user/register', method='POST', json_body={
        'username': username,
        'email': email,
        'phone': phone,
        'password': password,
        'confirmPassword': password,
        'role': role
    })


def login_user(flask_client, email: str, password: str = TEST_PASSWORD):
    return make_request(flask_client, endpoint='/user/login', method='POST',
                        json_body={'email': email, 'password': password})


def create_logged_in_user(flask_client, role: str, email: str, username: str = 'tester') -> dict:
    """
    :return:
    {userId, username, email, role, token} of the login response
    """
    response = register_user(flask_client, email=email, role=role, username=username)
    assert response.status_code == 201, response.data
    response = login_user(flask_client, email=email)
    assert response.status_code == 200, response.data
    return response_body(response)['data']


def create_test_dish(flask_client, token: str, **overrides) -> dict:
    dish_to_create = {
        'dishName': 'Paneer Tikka',
        'description': 'Grilled cottage cheese with spices',
        'cuisine': 'Indian',
        'price': 100,
        'isAvailable': True,
        'coverImage': TEST_COVER_IMAGE,
        **overrides
    }
    response = make_request(flask_client, endpoint='/dish/addDish', method='POST',
                            json_body=dish_to_create, token=token)
    assert response.status_code == 201, response.data
    return response_body(response)['data']


def create_test_order(flask_client, token: str, items: list, shipping_address: str = 'Baker Street 221b',
                      billing_address: str = 'Baker Street 221b'):
    return make_request(flask_client, endpoint='/order/addOrder', method='POST', token=token, json_body={
        'orderItems': items,
        'shippingAddress': shipping_address,
        'billingAddress': billing_address
    })


def create_test_review(flask_client, token: str, dish_id: str, rating: int = 5, review_text: str = 'Tasty'):
    return make_request(flask_client, endpoint='/review/addReview', method='POST', token=token, json_body={
        'dish': dish_id,
        'rating': rating,
        'reviewText': review_text
    })


def image_bytes(image_format: str = 'PNG', size=(64, 32), color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new('RGB', size, color).save(buf, format=image_format)
    return buf.getvalue()


def noise_image_bytes(image_format: str = 'PNG', size=(1024, 512)) -> bytes:
    """Random pixels, they do not compress"""
    buf = BytesIO()
    Image.frombytes('RGB', size, os.urandom(size[0] * size[1] * 3)).save(buf, format=image_format)
    return buf.getvalue()
