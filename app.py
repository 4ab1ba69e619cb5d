from uuid import uuid4

from dotenv import load_dotenv
from flask import Flask, request
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

load_dotenv()

from foodlib import auth, dishes, images, orders, reviews, users  # noqa: E402
from foodlib.utils import app as utils_app, db as utils_db  # noqa: E402
from foodlib.utils.logger import logger, log_request, json_default  # noqa: E402


class FoodJSONProvider(DefaultJSONProvider):
    sort_keys = False

    @staticmethod
    def default(value):
        return json_default(value)


app = Flask(__name__)
app.json = FoodJSONProvider(app)


@app.before_request
def start_request():
    logger.current_request_id = str(uuid4()).split('-')[4]
    log_request(request)


@app.errorhandler(Exception)
def handle_unexpected_exception(error):
    if isinstance(error, HTTPException):
        return error
    return utils_app.handle_exception(error, request.endpoint or '')


@app.cli.command('create-table')
def create_table():
    """Create the DynamoDB table the application works with."""
    utils_db.create_gen_table()


@app.route('/health-check', methods=['GET'])
def health_check():
    return {'health': 'check'}


# USERS
@app.route('/user/register', methods=['POST'])
def register_user():
    return auth.register(request)


@app.route('/user/login', methods=['POST'])
def login_user():
    return auth.login(request)


@app.route('/user/resetPassword', methods=['PUT'])
def reset_password():
    """
    overwrites the password without proof of ownership, switched off by PASSWORD_RESET_ENABLED=false
    """
    return auth.reset_password(request)


@app.route('/user/getAllUsers', methods=['GET'])
@auth.role_authorizer
def get_all_users():
    """
    admin operation
    """
    return users.User.endpoint_get_users()


@app.route('/user/getUserById/<user_id>', methods=['GET'])
@auth.role_authorizer
def get_user_by_id(user_id):
    return users.User.init_by_id(user_id).endpoint_get_user()


# DISHES
@app.route('/dish/getAllDishes', methods=['GET'])
def get_all_dishes():
    return dishes.Dish.endpoint_get_dishes()


@app.route('/dish/getDishById/<dish_id>', methods=['GET'])
def get_dish_by_id(dish_id):
    return dishes.Dish.init_get_by_id(dish_id).endpoint_get_dish()


@app.route('/dish/addDish', methods=['POST'])
@auth.role_authorizer
def add_dish():
    """
    admin operation
    """
    return dishes.Dish.init_request_create(request).endpoint_create_dish()


@app.route('/dish/updateDish/<dish_id>', methods=['PUT'])
@auth.role_authorizer
def update_dish(dish_id):
    """
    admin operation
    """
    return dishes.Dish.init_request_update(request, dish_id).endpoint_update_dish()


@app.route('/dish/deleteDish/<dish_id>', methods=['DELETE'])
@auth.role_authorizer
def delete_dish(dish_id):
    """
    admin operation, orders and reviews of the dish are kept
    """
    return dishes.Dish.init_get_by_id(dish_id).endpoint_delete_dish()


@app.route('/dish/uploadCoverImage', methods=['POST'])
@auth.role_authorizer
def upload_cover_image():
    """
    admin operation, multipart field coverImage, responds with a data uri
    """
    return images.image_upload(request)


# ORDERS
@app.route('/order/getAllOrders', methods=['GET'])
@auth.role_authorizer
def get_all_orders():
    """
    admin operation
    """
    return orders.endpoint_get_orders()


@app.route('/order/getOrderById/<order_id>', methods=['GET'])
@auth.role_authorizer
def get_order_by_id(order_id):
    """
    user can get details only of his orders
    admin can get details of any order
    """
    return orders.Order.init_request_get_order(order_id).endpoint_get_by_id()


@app.route('/order/addOrder', methods=['POST'])
@auth.role_authorizer
def add_order():
    return orders.Order.init_request_create(request).endpoint_create_order()


@app.route('/order/updateOrder/<order_id>', methods=['PUT'])
@auth.role_authorizer
def update_order(order_id):
    """
    admin operation, status only moves forward
    """
    return orders.Order.init_request_update(request, order_id).endpoint_update_order()


@app.route('/order/deleteOrder/<order_id>', methods=['DELETE'])
@auth.role_authorizer
def delete_order(order_id):
    """
    owner can cancel the order while it is Pending
    """
    return orders.Order.init_request_get_order(order_id).endpoint_delete_order()


@app.route('/order/getOrdersByUserId/<user_id>', methods=['GET'])
@auth.role_authorizer
def get_orders_by_user_id(user_id):
    """
    user can get his orders
    admin can get orders of any user
    """
    return orders.endpoint_get_orders(user_id=user_id)


# REVIEWS
@app.route('/review/getAllReviews', methods=['GET'])
def get_all_reviews():
    return reviews.Review.endpoint_get_reviews()


@app.route('/review/getReviewById/<review_id>', methods=['GET'])
def get_review_by_id(review_id):
    return reviews.Review.init_get_by_id(review_id).endpoint_get_review()


@app.route('/review/getReviewsByUserId/<user_id>', methods=['GET'])
def get_reviews_by_user_id(user_id):
    return reviews.Review.endpoint_get_reviews(user_id=user_id)


@app.route('/review/getReviewsByDishId/<dish_id>', methods=['GET'])
def get_reviews_by_dish_id(dish_id):
    return reviews.Review.endpoint_get_reviews(dish_id=dish_id)


@app.route('/review/addReview', methods=['POST'])
@auth.role_authorizer
def add_review():
    return reviews.Review.init_request_create(request).endpoint_create_review()


@app.route('/review/updateReview/<review_id>', methods=['PUT'])
@auth.role_authorizer
def update_review(review_id):
    """
    author operation
    """
    return reviews.Review.init_request_update(request, review_id).endpoint_update_review()


@app.route('/review/deleteReview/<review_id>', methods=['DELETE'])
@auth.role_authorizer
def delete_review(review_id):
    """
    author operation
    """
    return reviews.Review.init_request_delete(review_id).endpoint_delete_review()
