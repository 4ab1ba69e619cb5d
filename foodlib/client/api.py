import json
import os
from typing import Dict

import requests

from foodlib.client.exceptions import ApiError, TransportError
from foodlib.client.state import AppState, SESSION_KEY
from foodlib.utils.logger import logger, CustomJSONEncoder

DEFAULT_API_BASE_URL = 'http://localhost:5000'
DEFAULT_TIMEOUT = 10
TRANSPORT_ERROR_MESSAGE = 'Could not reach the server, please try again later'


class ApiClient:
    """
    Talks to the food ordering API.
    Adds the bearer token of the stored session, unwraps the {success, message, data} envelope
    and raises ApiError with the server message on failures.
    """

    def __init__(self, base_url: str = None, state: AppState = None, session: requests.Session = None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.base_url = (base_url or os.environ.get('API_BASE_URL', DEFAULT_API_BASE_URL)).rstrip('/')
        self.state = state
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get_headers(self) -> Dict:
        headers = {'Content-Type': 'application/json'}
        session_user = self.state.get(SESSION_KEY) if self.state is not None else None
        if isinstance(session_user, dict) and session_user.get('token'):
            headers['Authorization'] = f"Bearer {session_user['token']}"
        return headers

    def request(self, method: str, path: str, json_body=None, files=None):
        url = f'{self.base_url}{path}'
        headers = self._get_headers()
        kwargs = {'headers': headers, 'timeout': self.timeout}
        if files is not None:
            headers.pop('Content-Type')
            kwargs['files'] = files
        elif json_body is not None:
            kwargs['data'] = json.dumps(json_body, cls=CustomJSONEncoder)

        logger.debug(f'request ::: {method} {url}')
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as error:
            logger.warning(f'request ::: {method} {url} failed, {error=}')
            raise TransportError(TRANSPORT_ERROR_MESSAGE) from error
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response):
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or 'success' not in body:
            logger.warning(f'_unwrap ::: unexpected response, status={response.status_code}')
            raise ApiError(f'Unexpected response from the server (status {response.status_code})',
                           status_code=response.status_code)
        if response.status_code >= 400 or body.get('success') is not True:
            raise ApiError(body.get('message') or f'Request failed with status {response.status_code}',
                           status_code=response.status_code, body=body)
        return body.get('data')

    def get(self, path: str):
        return self.request('GET', path)

    def post(self, path: str, json_body=None, files=None):
        return self.request('POST', path, json_body=json_body, files=files)

    def put(self, path: str, json_body=None):
        return self.request('PUT', path, json_body=json_body)

    def delete(self, path: str):
        return self.request('DELETE', path)

    def get_or_none(self, path: str):
        """
        Lookup of a record which could be deleted, 404 is not an error here
        """
        try:
            return self.get(path)
        except ApiError as error:
            if error.status_code == 404:
                return None
            raise
