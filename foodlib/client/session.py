from typing import Dict

from foodlib.client.api import ApiClient
from foodlib.client.cart import CartStore
from foodlib.client.exceptions import ActionRejected, FormValidationError, NotLoggedIn
from foodlib.client.state import AppState, SESSION_KEY
from foodlib.constants.constants import (
    ROLE_ADMIN, ROLES, EMAIL_PATTERN, PHONE_PATTERN, MIN_PASSWORD_LENGTH, MIN_RESET_PASSWORD_LENGTH
)
from foodlib.utils.logger import logger

LOGIN_ROUTE = '/login'
USER_HOME_ROUTE = '/user'
ADMIN_HOME_ROUTE = '/admin/dashboard'


def validate_registration(username, email, phone, password, confirm_password, role) -> Dict:
    errors = {}
    if not isinstance(username, str) or not username.strip():
        errors['username'] = 'Username is required'
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
        errors['email'] = 'Please enter a valid email address'
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone):
        errors['phone'] = 'Mobile number must be exactly 10 digits'
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        errors['password'] = f'Password must be at least {MIN_PASSWORD_LENGTH} characters long'
    if confirm_password != password:
        errors['confirmPassword'] = 'Passwords do not match'
    if role not in ROLES:
        errors['role'] = 'Please select a role'
    return errors


def validate_password_reset(email, new_password, confirm_password) -> Dict:
    errors = {}
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
        errors['email'] = 'Please enter a valid email address'
    if not isinstance(new_password, str) or len(new_password) < MIN_RESET_PASSWORD_LENGTH:
        errors['newPassword'] = f'Password must be at least {MIN_RESET_PASSWORD_LENGTH} characters long'
    if confirm_password != new_password:
        errors['confirmPassword'] = 'Passwords do not match'
    return errors


class AuthSession:
    """
    Login state of the client, the session slot holds {userId, username, email, role, token}
    """

    def __init__(self, api: ApiClient, state: AppState, cart: CartStore = None):
        self.api = api
        self.state = state
        self.cart = cart or CartStore(state)

    def current_user(self) -> Dict:
        session_user = self.state.get(SESSION_KEY)
        return session_user if isinstance(session_user, dict) and session_user.get('token') else None

    def is_logged_in(self) -> bool:
        return self.current_user() is not None

    def login(self, email: str, password: str) -> Dict:
        errors = {}
        if not email:
            errors['email'] = 'Email is required'
        if not password:
            errors['password'] = 'Password is required'
        if errors:
            raise FormValidationError(errors)

        data = self.api.post('/user/login', {'email': email.strip(), 'password': password})
        session_user = {
            'userId': data['userId'],
            'username': data['username'],
            'email': data['email'],
            'role': data['role'],
            'token': data['token']
        }
        self.state.set(SESSION_KEY, session_user)
        logger.info(f"login ::: user {session_user['userId']} logged in as {session_user['role']}")
        return session_user

    def register(self, username: str, email: str, phone: str, password: str, confirm_password: str,
                 role: str) -> Dict:
        errors = validate_registration(username, email, phone, password, confirm_password, role)
        if errors:
            raise FormValidationError(errors)
        return self.api.post('/user/register', {
            'username': username.strip(),
            'email': email.strip(),
            'phone': phone,
            'password': password,
            'confirmPassword': confirm_password,
            'role': role
        })

    def reset_password(self, email: str, new_password: str, confirm_password: str) -> Dict:
        errors = validate_password_reset(email, new_password, confirm_password)
        if errors:
            raise FormValidationError(errors)
        return self.api.put('/user/resetPassword', {
            'email': email.strip(),
            'newPassword': new_password,
            'confirmPassword': confirm_password
        })

    def logout(self) -> str:
        self.state.clear(SESSION_KEY)
        self.cart.clear()
        return LOGIN_ROUTE

    def require_role(self, role: str = None) -> Dict:
        session_user = self.current_user()
        if session_user is None:
            raise NotLoggedIn('Please log in to continue')
        if role is not None and session_user.get('role') != role:
            raise ActionRejected("You don't have access to this page")
        return session_user

    def home_route(self) -> str:
        session_user = self.current_user()
        if session_user is None:
            return LOGIN_ROUTE
        return ADMIN_HOME_ROUTE if session_user.get('role') == ROLE_ADMIN else USER_HOME_ROUTE
