"""
This module provides the HTTP client used to talk to the clinic backend.

It defines the `ApiClient` class, which is responsible for:
- Holding one `requests.Session` per browser session, so the backend's httpOnly
  session cookie and the readable CSRF cookie travel with every call.
- Echoing the CSRF cookie back as the `X-XSRF-TOKEN` header.
- Turning non-2xx responses and connection failures into `ApiError`, carrying
  the most useful message the backend supplied.
"""
# coldesthetic/clinic/api.py

import logging
from urllib.parse import unquote

import requests

from clinic.config import (
    API_BASE_URL,
    API_PREFIX,
    CSRF_COOKIE_NAME,
    CSRF_COOKIE_PATH,
    CSRF_HEADER_NAME,
    REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = "Error de conexión con el servidor."
GENERIC_ERROR_MESSAGE = "Error inesperado"


class ApiError(Exception):
    """Raised when a backend call fails or returns an unusable payload.

    Attributes:
        message (str): A user-facing description of the failure.
        status (int | None): The HTTP status code, or None for network and parsing errors.
        payload: The decoded response body, when there was one.
    """

    def __init__(self, message, status=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


def extract_error_message(payload, fallback=GENERIC_ERROR_MESSAGE):
    """Picks the message to show for a failed response.

    The backend answers validation failures with an `errors` map of field to
    message list, and other failures with a `message` string.

    Args:
        payload: The decoded JSON body of the failed response (may be None).
        fallback (str): The message used when the payload has nothing useful.

    Returns:
        str: The message to display.
    """
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
        errors = payload.get("errors")
        if isinstance(errors, dict):
            flattened = []
            for value in errors.values():
                if isinstance(value, (list, tuple)):
                    flattened.extend(str(item) for item in value)
                elif value:
                    flattened.append(str(value))
            if flattened:
                return " ".join(flattened)
    return fallback


def unwrap(payload):
    """Returns the `data` member of a resource envelope, or the payload itself."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class ApiClient:
    """Credentialed JSON client for the clinic REST API."""

    def __init__(self, base_url=API_BASE_URL, http=None, timeout=REQUEST_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()
        self.http.headers.update({"Accept": "application/json"})

    def url(self, path: str) -> str:
        """Builds an absolute URL; bare paths are placed under the API prefix."""
        if path.startswith("/"):
            return f"{self.base_url}{path}"
        return f"{self.base_url}{API_PREFIX}/{path}"

    def csrf_token(self) -> str:
        """Returns the current CSRF token from the cookie jar, URL-decoded."""
        token = self.http.cookies.get(CSRF_COOKIE_NAME)
        return unquote(token) if token else ""

    def fetch_csrf_cookie(self):
        """Asks the backend to set a fresh CSRF cookie."""
        self.request("GET", CSRF_COOKIE_PATH, fallback_error=CONNECTION_ERROR_MESSAGE)

    def request(self, method, path, *, params=None, json=None, data=None, files=None,
                fallback_error=GENERIC_ERROR_MESSAGE):
        """Issues a request and returns the decoded JSON body.

        Args:
            method (str): The HTTP verb.
            path (str): An API path (see `url`).
            params (dict, optional): Query string parameters.
            json (dict, optional): A JSON body.
            data (dict, optional): Form fields, used with `files` for multipart uploads.
            files (dict, optional): Multipart file parts.
            fallback_error (str): The message used when the backend gives none.

        Returns:
            The decoded JSON body, or None for empty or non-JSON bodies.

        Raises:
            ApiError: On connection failures and non-2xx responses.
        """
        headers = {}
        token = self.csrf_token()
        if token:
            headers[CSRF_HEADER_NAME] = token

        url = self.url(path)
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError(CONNECTION_ERROR_MESSAGE) from exc

        payload = _decode(response)
        if not response.ok:
            logger.info("%s %s returned %s", method, url, response.status_code)
            raise ApiError(
                extract_error_message(payload, fallback_error),
                status=response.status_code,
                payload=payload,
            )
        return payload

    def get(self, path, params=None, **kwargs):
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path, json=None, **kwargs):
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path, json=None, **kwargs):
        return self.request("PUT", path, json=json, **kwargs)

    def patch(self, path, json=None, **kwargs):
        return self.request("PATCH", path, json=json, **kwargs)

    def delete(self, path, **kwargs):
        return self.request("DELETE", path, **kwargs)


def _decode(response):
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
