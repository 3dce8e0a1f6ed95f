"""HTTP client for the CV Builder API.

Wraps an ``httpx.Client`` with bearer-token handling, a fixed timeout and
one error type: every failure (HTTP error status, timeout, no response)
surfaces as ``ApiError`` with a human-readable ``message``.
"""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response from server. Please check your internet connection."
TIMED_OUT = "Request timed out. The server may be overloaded, please try again."


class ApiError(Exception):
    """Normalised API failure. ``status`` is None when no response arrived."""

    def __init__(self, message: str, status: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    def __str__(self) -> str:
        return self.message


def error_message(response: httpx.Response) -> str:
    """Best human-readable message from any backend error body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            msgs = []
            for err in errors:
                if isinstance(err, dict):
                    msgs.append(str(err.get("msg") or err.get("message") or err))
                else:
                    msgs.append(str(err))
            return "; ".join(msgs)
        if body.get("error"):
            return str(body["error"])
        if body.get("detail"):
            return str(body["detail"])
    elif isinstance(body, str) and body:
        return body

    text = response.text.strip() if body is None else ""
    if text and len(text) < 500:
        return text
    return response.reason_phrase or "Server error"


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token
        self._client = client or httpx.Client(timeout=timeout or settings.api_timeout)
        self._owns_client = client is None
        self._unauthorized_handlers: list[Callable[[], None]] = []
        if on_unauthorized:
            self._unauthorized_handlers.append(on_unauthorized)

    def add_unauthorized_handler(self, handler: Callable[[], None]) -> None:
        self._unauthorized_handlers.append(handler)

    def remove_unauthorized_handler(self, handler: Callable[[], None]) -> None:
        if handler in self._unauthorized_handlers:
            self._unauthorized_handlers.remove(handler)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def _handle_unauthorized(self) -> None:
        logger.warning("401 Unauthorized, clearing token")
        self.token = None
        for handler in self._unauthorized_handlers:
            handler()

    def send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request and return the raw response (2xx only)."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        else:
            logger.debug("No auth token available for %s %s", method, path)

        logger.debug("API request: %s %s", method, path)
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("Request timeout on %s %s", method, path)
            raise ApiError(TIMED_OUT) from e
        except httpx.RequestError as e:
            logger.error("Network error on %s %s: %s", method, path, e)
            raise ApiError(NO_RESPONSE) from e

        logger.debug("API response: %d from %s (%d bytes)", response.status_code, path, len(response.content))
        if response.status_code == 401:
            self._handle_unauthorized()
        if response.status_code >= 400:
            message = error_message(response)
            logger.error("API error %d on %s %s: %s", response.status_code, method, path, message)
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            raise ApiError(message, status=response.status_code, payload=payload)
        return response

    def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and decode its JSON body."""
        response = self.send(method, path, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Unexpected response from server", status=response.status_code) from e

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs) -> Any:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs) -> Any:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)
