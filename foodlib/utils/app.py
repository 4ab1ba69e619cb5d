import functools
from typing import Callable

from flask import Response, jsonify

from foodlib.constants import status_codes
from foodlib.utils import exceptions
from foodlib.utils.logger import logger, log_exception

# Order matters, subclasses go before their parents
EXCEPTION_STATUS_CODES = (
    (exceptions.MandatoryFieldsAreNotFilled, status_codes.http400),
    (exceptions.ValidationException, status_codes.http400),
    (exceptions.SomeItemsAreNotAvailable, status_codes.http400),
    (exceptions.OrderCannotBeCancelled, status_codes.http400),
    (exceptions.InvalidStatusTransition, status_codes.http400),
    (exceptions.InvalidCredentials, status_codes.http401),
    (exceptions.NotAuthorizedException, status_codes.http401),
    (exceptions.AccessDenied, status_codes.http403),
    (exceptions.FeatureDisabled, status_codes.http403),
    (exceptions.RecordNotFound, status_codes.http404),
    (exceptions.DuplicateRecord, status_codes.http409),
)

INTERNAL_ERROR_MESSAGE = 'Something went wrong, please try again later'


def json_response(data=None, message: str = None, status_code: int = status_codes.http200) -> Response:
    response = jsonify({
        'success': status_code < status_codes.http400,
        'message': message,
        'data': data
    })
    response.status_code = status_code
    return response


def error_response(error: Exception, msg: str = "", status_code: int = 400, *args, **kwargs) -> Response:
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    response = jsonify({
        'success': False,
        'message': str(error) if status_code < status_codes.http500 else INTERNAL_ERROR_MESSAGE,
        'data': None,
        'error': str(error),
        'exception': error.__class__.__name__,
        'error_id': getattr(logger, 'current_request_id'),
        'level': getattr(error, 'LEVEL', 'exception')
    })
    response.status_code = status_code
    return response


def get_status_code(error: Exception) -> int:
    for exception_class, status_code in EXCEPTION_STATUS_CODES:
        if isinstance(error, exception_class):
            return status_code
    return status_codes.http500


def handle_exception(error: Exception, func_name: str = '') -> Response:
    return error_response(
        error=error,
        msg=f'function = {func_name}, error = {error}',
        status_code=get_status_code(error)
    )


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except Exception as exception:
            return handle_exception(exception, func.__name__)
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
