import json
import os
from datetime import datetime, date
from decimal import Decimal
from logging import setLoggerClass, Logger, NOTSET, getLogger, StreamHandler, Formatter
from time import mktime, struct_time

from flask import Request, g, has_app_context

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_LEVELS = ('debug', 'info', 'warning', 'error', 'exception')
SECRET_BODY_KEYS = ('password', 'newPassword', 'confirmPassword')
REDACTED = '***'


class CustomLogger(Logger):
    """
    Puts the id of the request being served in front of every message
    """

    def __init__(self, name, level=NOTSET):
        self._request_id = None
        super(CustomLogger, self).__init__(name, level)

    @property
    def current_request_id(self):
        # per request on flask.g, outside of a request on the logger
        if has_app_context():
            return g.get('request_id')
        return self._request_id

    @current_request_id.setter
    def current_request_id(self, request_id):
        if has_app_context():
            g.request_id = request_id
        else:
            self._request_id = request_id

    def _log(self, level, msg, args, **kwargs):
        super(CustomLogger, self)._log(level, f'[{self.current_request_id}] : {msg}', args, **kwargs)


def conf_logger(level: str) -> CustomLogger:
    setLoggerClass(CustomLogger)
    logger_ = getLogger(__name__)
    handler = StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(Formatter(LOG_FORMAT))
    logger_.handlers.clear()
    logger_.addHandler(handler)
    logger_.setLevel(level)
    return logger_


logger = conf_logger(os.environ.get('LOG_LEVEL', 'INFO').upper())


def log_request(request: Request):
    headers = {name: value for name, value in request.headers.items() if name.lower() != 'authorization'}
    request_dict = {
        'method': request.method,
        'path': request.path,
        'query_params': request.args.to_dict(),
        'headers': headers
    }
    logger.info(f"Request: {json.dumps(request_dict)}")
    if request.mimetype == 'application/json':
        logger.debug(f"Request body: {redact_body(request.get_data(as_text=True))}")


def redact_body(raw_body: str) -> str:
    try:
        body = json.loads(raw_body)
    except ValueError:
        return '<not a JSON document>'
    if not isinstance(body, dict):
        return raw_body
    return json.dumps({key: REDACTED if key in SECRET_BODY_KEYS else value for key, value in body.items()})


def json_default(value):
    """
    Decimals from DynamoDB go out as int when whole, float otherwise
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date)):
        return str(value)
    if isinstance(value, struct_time):
        return str(datetime.fromtimestamp(mktime(value)))
    raise TypeError(f'Object of type {value.__class__.__name__} is not JSON serializable')


class CustomJSONEncoder(json.JSONEncoder):
    def default(self, value):
        try:
            return json_default(value)
        except TypeError:
            return super(CustomJSONEncoder, self).default(value)


def log_exception(error: Exception, status_code: int = 400, msg: str = "", *args, **kwargs):
    """
    Logs the error as one JSON line, the level comes from the LEVEL attribute of the exception class
    """
    level = getattr(error, 'LEVEL', 'exception')
    if level not in LOG_LEVELS:
        level = 'exception'
    record = {
        'error': str(error),
        'exception': error.__class__.__name__,
        'message': str(msg),
        'level': level,
        'status_code': status_code,
        'args': args,
        'kwargs': kwargs
    }
    getattr(logger, level)(json.dumps(record, cls=CustomJSONEncoder))
