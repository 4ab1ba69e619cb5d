import os
from datetime import datetime, timedelta, timezone

import jwt
from flask import Request, g
from werkzeug.security import generate_password_hash, check_password_hash

from foodlib.constants import keys_structure
from foodlib.utils import exceptions as utils_exceptions, db as utils_db
from foodlib.utils.logger import logger

JWT_ALGORITHM = 'HS256'
DEFAULT_JWT_SECRET_KEY = 'local-development-only-secret-key-change-me'
DEFAULT_JWT_EXPIRE_HOURS = 24


def get_jwt_secret_key() -> str:
    return os.environ.get('JWT_SECRET_KEY', DEFAULT_JWT_SECRET_KEY)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: str, password: str) -> bool:
    if not password_hash or not isinstance(password, str):
        return False
    return check_password_hash(password_hash, password)


def encode_token(user_id: str, role: str, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        'sub': user_id,
        'role': role,
        'email': email,
        'iat': now,
        'exp': now + timedelta(hours=int(os.environ.get('JWT_EXPIRE_HOURS', DEFAULT_JWT_EXPIRE_HOURS)))
    }
    return jwt.encode(payload, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_jwt_secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as error:
        logger.warning(f'decode_token ::: token rejected, {error=}')
        raise utils_exceptions.NotAuthorizedException('Invalid or expired token')


def get_bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get('Authorization', '').partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise utils_exceptions.NotAuthorizedException('Authorization token is missing')
    return token.strip()


def get_user_role_and_email(user_id):
    try:
        user_item = utils_db.get_db_item(
            partkey=keys_structure.users_pk,
            sortkey=keys_structure.users_sk.format(user_id=user_id)
        )
    except utils_exceptions.RecordNotFound:
        raise utils_exceptions.NotAuthorizedException('User of the token does not exist anymore')
    return user_item.get('role'), user_item.get('email')


def authenticate(request: Request) -> dict:
    """
    Verifies the bearer token of the request and puts the caller into flask.g.auth_result
    Role is taken from the db record, a stale role in the token is ignored
    """
    claims = decode_token(get_bearer_token(request))
    user_id = claims.get('sub')
    user_role, email = get_user_role_and_email(user_id)
    auth_result = {'user_id': user_id, 'role': user_role, 'email': email}
    g.auth_result = auth_result
    logger.info(f'authenticate ::: SUCCESS, {user_id=}, {user_role=}')
    return auth_result


def get_auth_result() -> dict:
    return g.get('auth_result') or {}
