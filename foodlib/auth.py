import functools
import os
from fnmatch import fnmatchcase
from typing import Callable, Dict, List, Tuple
from uuid import uuid4

from flask import Request, Response, request as current_request

from foodlib.constants.constants import (
    ROLE_ADMIN, ROLE_USER, ROLES, EMAIL_PATTERN, PHONE_PATTERN, MIN_PASSWORD_LENGTH, MIN_RESET_PASSWORD_LENGTH
)
from foodlib.constants.status_codes import http200, http201
from foodlib.constants.substitute_keys import to_db
from foodlib.users import User
from foodlib.utils import app as utils_app, auth as utils_auth, data as utils_data
from foodlib.utils.exceptions import (
    AccessDenied, InvalidCredentials, RecordNotFound, ValidationException, MandatoryFieldsAreNotFilled,
    FeatureDisabled
)
from foodlib.utils.logger import logger

UUID_PATTERN = '????????-????-4???-????-????????????'

USER_ROUTES: List[Tuple[str, List[str]]] = [
    (f'/user/getUserById/{UUID_PATTERN}', ['GET']),
    ('/order/addOrder', ['POST']),
    (f'/order/getOrderById/{UUID_PATTERN}', ['GET']),
    (f'/order/getOrdersByUserId/{UUID_PATTERN}', ['GET']),
    (f'/order/deleteOrder/{UUID_PATTERN}', ['DELETE']),
    ('/review/addReview', ['POST']),
    (f'/review/updateReview/{UUID_PATTERN}', ['PUT']),
    (f'/review/deleteReview/{UUID_PATTERN}', ['DELETE'])
]

ADMIN_ROUTES: List[Tuple[str, List[str]]] = [
    *USER_ROUTES,
    ('/user/getAllUsers', ['GET']),
    ('/dish/addDish', ['POST']),
    (f'/dish/updateDish/{UUID_PATTERN}', ['PUT']),
    (f'/dish/deleteDish/{UUID_PATTERN}', ['DELETE']),
    ('/dish/uploadCoverImage', ['POST']),
    ('/order/getAllOrders', ['GET']),
    (f'/order/updateOrder/{UUID_PATTERN}', ['PUT'])
]

ROLE_ROUTES: Dict[str, List[Tuple[str, List[str]]]] = {
    ROLE_USER: USER_ROUTES,
    ROLE_ADMIN: ADMIN_ROUTES
}


def is_route_allowed(role: str, path: str, method: str) -> bool:
    return any(
        fnmatchcase(path, path_pattern) and method in methods
        for path_pattern, methods in ROLE_ROUTES.get(role, [])
    )


def role_authorizer(func: Callable):
    """
    Wrapper for views which require an authenticated user with a role allowed to call the route
    """

    @functools.wraps(func)
    def result_auth(*args, **kwargs):
        try:
            auth_result = utils_auth.authenticate(current_request)
            if not is_route_allowed(auth_result['role'], current_request.path, current_request.method):
                raise AccessDenied("You don't have permissions to access this resource")
        except Exception as err:
            logger.error(f"role_authorizer ::: {str(err)}")
            return utils_app.handle_exception(err, func.__name__)
        return func(*args, **kwargs)

    return result_auth


def get_auth_request_body(request: Request) -> Dict:
    request_body = utils_data.parse_raw_body(request)
    utils_data.substitute_keys(request_body, to_db)
    return request_body


def check_mandatory_fields(request_body: Dict, fields: List[str]):
    missing = [field for field in fields if request_body.get(field) in (None, '')]
    if missing:
        raise MandatoryFieldsAreNotFilled(f"Mandatory fields are not filled: {', '.join(missing)}")


def validate_registration_body(request_body: Dict):
    check_mandatory_fields(request_body, ['username', 'email', 'mobile_number', 'password', 'role'])
    if not isinstance(request_body['email'], str) or not EMAIL_PATTERN.match(request_body['email'].strip()):
        raise ValidationException('Please enter a valid email address')
    if not isinstance(request_body['mobile_number'], str) or not PHONE_PATTERN.match(request_body['mobile_number']):
        raise ValidationException('Mobile number must be exactly 10 digits')
    if not isinstance(request_body['password'], str) or len(request_body['password']) < MIN_PASSWORD_LENGTH:
        raise ValidationException(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
    if 'confirm_password' in request_body and request_body['confirm_password'] != request_body['password']:
        raise ValidationException('Passwords do not match')
    if request_body['role'] not in ROLES:
        raise ValidationException(f"Role must be one of {', '.join(ROLES)}")


@utils_app.request_exception_handler
@utils_app.log_start_finish
def register(request: Request) -> Response:
    request_body = get_auth_request_body(request)
    validate_registration_body(request_body)
    user = User(
        id_=str(uuid4()),
        username=request_body['username'].strip(),
        email=request_body['email'],
        mobile_number=request_body['mobile_number'],
        role=request_body['role']
    )
    user.set_password(request_body['password'])
    user._create_db_record()
    logger.info(f'register ::: user {user.id_} with role {user.role} registered')
    return utils_app.json_response(data=user.to_ui(), message='User registered successfully', status_code=http201)


@utils_app.request_exception_handler
@utils_app.log_start_finish
def login(request: Request) -> Response:
    request_body = get_auth_request_body(request)
    email, password = request_body.get('email'), request_body.get('password')
    if not email or not password:
        raise InvalidCredentials('Invalid email or password')
    try:
        user: User = User.init_by_email(email)
    except RecordNotFound:
        raise InvalidCredentials('Invalid email or password')
    if not utils_auth.check_password(user.password_hash, password):
        raise InvalidCredentials('Invalid email or password')

    token = utils_auth.encode_token(user_id=user.id_, role=user.role, email=user.email)
    return utils_app.json_response(
        data={
            'userId': user.id_,
            'username': user.username,
            'email': user.email,
            'role': user.role,
            'token': token
        },
        message='Login successful',
        status_code=http200
    )


def is_password_reset_enabled() -> bool:
    return os.environ.get('PASSWORD_RESET_ENABLED', 'true').strip().lower() not in ('false', '0', 'no')


@utils_app.request_exception_handler
@utils_app.log_start_finish
def reset_password(request: Request) -> Response:
    if not is_password_reset_enabled():
        raise FeatureDisabled('Password reset is disabled')
    request_body = get_auth_request_body(request)
    check_mandatory_fields(request_body, ['email', 'new_password'])
    new_password = request_body['new_password']
    if not isinstance(new_password, str) or len(new_password) < MIN_RESET_PASSWORD_LENGTH:
        raise ValidationException(f'Password must be at least {MIN_RESET_PASSWORD_LENGTH} characters long')
    if 'confirm_password' in request_body and request_body['confirm_password'] != new_password:
        raise ValidationException('Passwords do not match')

    try:
        user: User = User.init_by_email(request_body['email'])
    except RecordNotFound:
        raise RecordNotFound('User with this email not found')
    # No proof of mailbox ownership is asked for, disable with PASSWORD_RESET_ENABLED=false outside of demos
    logger.warning(f'reset_password ::: password of user {user.id_} is overwritten without ownership check')
    user.set_password(new_password)
    user._update_db_record()
    return utils_app.json_response(data={'id': user.id_}, message='Password reset successfully', status_code=http200)
