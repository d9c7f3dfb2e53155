# lundimatin_client.py - token-authenticated HTTP client for the Lundi Matin REST API
import os
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import requests
from requests.auth import HTTPBasicAuth

from utils.payload_loader import get_logger

logger = get_logger("lundimatin-client")

BASE_URL_ENV = "LUNDI_MATIN_BASE_URL"
ACCEPT_HEADER = "application/api.rest-v1+json"
CONTENT_TYPE_HEADER = "application/json"
CODE_APPLICATION = "webservice_externe"
PASSWORD_TYPE_CLEAR = 0
CONNECT_TIMEOUT = 10
READ_TIMEOUT = 10


class APIError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(APIError):
    pass


class BadRequestError(APIError):
    pass


class ForbiddenError(APIError):
    pass


class NotFoundError(APIError):
    pass


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


# statuses that mean the held token can no longer be trusted
_TOKEN_INVALIDATING = {
    400: (BadRequestError, "Bad Request. Check parameters and Accept header."),
    401: (AuthenticationError, "Unauthorized. Please re-authenticate."),
    403: (ForbiddenError, "Forbidden. Invalid token."),
}

_PREFIXED_FAILURES = {
    405: "Method Not Allowed",
    410: "Version Incompatibility",
    415: "Unsupported Media Type",
    500: "Internal Server Error",
}


def is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def drop_blank(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if not is_blank(v)}


class LundimatinClient:
    """
    Client for the Lundi Matin REST API.

    The session token is fetched lazily by the first call that needs it and
    reused afterwards. Responses with status 400, 401 or 403 discard it so the
    next call logs in again; nothing is retried within a single call.

    Instances are not thread-safe: build one per logical session, passing a
    previously issued token through ``token`` when the caller keeps one.
    """

    def __init__(self, username: str, password: str, code_version: str = "1",
                 token: Optional[str] = None, base_url: Optional[str] = None):
        self._username = username
        self._password = password
        self._code_version = code_version
        self._token = token
        self._base_url = base_url

    @property
    def token(self) -> Optional[str]:
        return self._token

    def is_authenticated(self) -> bool:
        return self._token is not None

    def clear_token(self):
        self._token = None

    def authenticate(self) -> str:
        """
        Log in with the client credentials and store the issued token.

        Returns the token. Any failure clears a previously held token before
        the error propagates.
        """
        payload = {
            "username": self._username,
            "password": self._password,
            "password_type": PASSWORD_TYPE_CLEAR,
            "code_application": CODE_APPLICATION,
            "code_version": self._code_version,
        }
        try:
            response = self._send(HttpMethod.POST, "auth", body=payload, authorize=False)
            token = self._handle_response(response, on_success=self._store_token)
        except APIError:
            self._token = None
            raise
        logger.info("Authenticated as %s", self._username)
        return token

    def get_clients(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.api_call(HttpMethod.GET, "clients", query=params)

    def get_client(self, client_id) -> Dict[str, Any]:
        return self.api_call(HttpMethod.GET, f"clients/{client_id}")

    def update_client(self, client_id, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return self.api_call(HttpMethod.PUT, f"clients/{client_id}", body=attributes)

    def api_call(self, method, endpoint: str, query: Optional[Dict[str, Any]] = None,
                 body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Generic request executor behind every resource helper.

        ``query`` is only used for GET (blank values dropped) and ``body`` only
        for POST/PUT. Returns the decoded response envelope.
        """
        method = self._coerce_method(method)
        if self._token is None:
            self.authenticate()
        response = self._send(method, endpoint, query=query, body=body)
        return self._handle_response(response)

    # ---------- internals ----------
    @staticmethod
    def _coerce_method(method) -> HttpMethod:
        try:
            return HttpMethod(str(getattr(method, "value", method)).upper())
        except ValueError:
            raise APIError(f"Unsupported HTTP method: {method}") from None

    def _resolve_base_url(self) -> str:
        url = self._base_url or os.environ.get(BASE_URL_ENV, "").strip()
        if not url:
            raise APIError(f"{BASE_URL_ENV} environment variable is not set")
        # the session token travels as Basic credentials, never over plain http
        if urlparse(url).scheme.lower() != "https":
            raise APIError(f"Base URL must use https: {url}")
        return url

    def _url(self, endpoint: str) -> str:
        return f"{self._resolve_base_url().rstrip('/')}/{endpoint.lstrip('/')}"

    @staticmethod
    def _headers(method: HttpMethod) -> Dict[str, str]:
        headers = {"Accept": ACCEPT_HEADER}
        if method in (HttpMethod.POST, HttpMethod.PUT):
            headers["Content-Type"] = CONTENT_TYPE_HEADER
        return headers

    def _auth(self, authorize: bool) -> Optional[HTTPBasicAuth]:
        # empty username, token as the password
        if authorize and self._token is not None:
            return HTTPBasicAuth("", self._token)
        return None

    def _send(self, method: HttpMethod, endpoint: str, query=None, body=None,
              authorize: bool = True) -> requests.Response:
        url = self._url(endpoint)
        params = None
        json_payload = None
        if method is HttpMethod.GET:
            params = drop_blank(query) or None
        elif method in (HttpMethod.POST, HttpMethod.PUT):
            json_payload = body if body is not None else {}
        if query and method is not HttpMethod.GET:
            logger.debug("Ignoring query parameters for %s %s", method.value, endpoint)

        logger.debug("%s %s params=%s", method.value, url, params)
        try:
            response = requests.request(
                method.value,
                url,
                params=params,
                json=json_payload,
                headers=self._headers(method),
                auth=self._auth(authorize),
                timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
            )
        except requests.exceptions.Timeout as e:
            raise APIError(f"Request timed out: {method.value} {endpoint}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise APIError(f"Request failed: {method.value} {endpoint}: {e}") from e
        logger.debug("%s %s -> %s", method.value, endpoint, response.status_code)
        return response

    def _store_token(self, datas) -> str:
        token = datas.get("token") if isinstance(datas, dict) else None
        if is_blank(token):
            raise APIError("Authentication response did not include a token")
        self._token = token
        return token

    def _handle_response(self, response: requests.Response,
                         on_success: Optional[Callable[[Any], Any]] = None):
        status = response.status_code
        try:
            data = response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON response: {e}", status_code=status) from e

        message = data.get("message") if isinstance(data, dict) else None

        if status in (200, 201):
            if on_success is not None:
                datas = data.get("datas") if isinstance(data, dict) else None
                return on_success(datas)
            return data

        if status in _TOKEN_INVALIDATING:
            self._token = None
            error_cls, default = _TOKEN_INVALIDATING[status]
            logger.warning("HTTP %s from server, session token discarded", status)
            raise error_cls(message if not is_blank(message) else default, status_code=status)

        if status == 404:
            raise NotFoundError(message if not is_blank(message) else "Not Found", status_code=status)

        if status in _PREFIXED_FAILURES:
            raise APIError(f"{_PREFIXED_FAILURES[status]}: {message or ''}", status_code=status)

        raise APIError(f"Unexpected status code: {status}", status_code=status)
