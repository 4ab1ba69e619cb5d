__all__ = ["ClientException", "FormValidationError", "ActionRejected", "TransportError", "ApiError", "NotLoggedIn"]


class ClientException(Exception):
    pass


# Validation exceptions
class FormValidationError(ClientException):
    LEVEL = 'warning'

    def __init__(self, errors: dict):
        self.errors = errors
        super(FormValidationError, self).__init__('; '.join(f'{field}: {message}' for field, message in errors.items()))


class ActionRejected(ClientException):
    LEVEL = 'warning'


class NotLoggedIn(ClientException):
    LEVEL = 'warning'


# Network exceptions
class TransportError(ClientException):
    pass


class ApiError(ClientException):
    def __init__(self, message: str, status_code: int = None, body: dict = None):
        self.message = message
        self.status_code = status_code
        self.body = body or {}
        super(ApiError, self).__init__(message)
