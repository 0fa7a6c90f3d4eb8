"""
Backend HTTP Client

DESIGN DECISION: There is exactly one place where HTTP happens.
BackendClient.call() sends a request and turns whatever comes back
into a RequestResult:
1. Connection problems and timeouts are retried with backoff
2. HTTP error statuses are NOT retried, they are classified
3. Nothing raises past this class for network reasons

Every caller therefore handles failure the same way: check `ok`.
"""

import asyncio
import json
from typing import Any, Callable, Optional

import requests
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gigledger.config import get_settings
from gigledger.models.results import FailureKind, RequestResult


logger = structlog.get_logger("gigledger.backend")


EXPECT_JSON = "json"
EXPECT_BYTES = "bytes"


def _error_message(response: requests.Response) -> str:
    """Pull a readable message out of an error response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("message", "error", "msg"):
            if payload.get(key):
                return str(payload[key])
    text = (response.text or "").strip()
    if text:
        return text[:500]
    return response.reason or f"HTTP {response.status_code}"


def _classify_status(status_code: int) -> FailureKind:
    if status_code in (401, 403):
        return FailureKind.UNAUTHORIZED
    if status_code == 404:
        return FailureKind.NOT_FOUND
    if 400 <= status_code < 500:
        return FailureKind.CLIENT_ERROR
    return FailureKind.SERVER_ERROR


class BackendClient:
    """
    Thin wrapper around a requests.Session bound to the backend base URL.

    The bearer token is read through `token_provider` on every call, so
    the client never holds session state of its own.
    """

    def __init__(
        self,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        http_session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_wait=None,
    ):
        settings = get_settings().backend
        self._token_provider = token_provider or (lambda: None)
        self._http = http_session or requests.Session()
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._timeout = timeout or settings.timeout_seconds
        self._max_retries = max_retries or settings.max_retries
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        """Absolute URL of an API path such as '/gigs/user'."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _headers(self, authenticated: bool) -> dict:
        headers = {"Accept": "application/json"}
        if authenticated:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send one request, retrying only failures that never reached the server."""
        retrying = Retrying(
            stop=stop_after_attempt(self._max_retries),
            wait=self._retry_wait,
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._http.request(method, url, timeout=self._timeout, **kwargs)

    def call(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json_body: Any = None,
        files: Optional[dict] = None,
        authenticated: bool = True,
        expect: str = EXPECT_JSON,
    ) -> RequestResult:
        """
        Perform one backend request.

        Args:
            method: HTTP method
            path: API path relative to the base URL
            params: Query parameters (None values are dropped)
            json_body: JSON request body
            files: Multipart files, as accepted by requests
            authenticated: Send the bearer token. If there is no token the
                request is not sent at all.
            expect: EXPECT_JSON to decode the body, EXPECT_BYTES for raw content

        Returns:
            RequestResult with the decoded body as data
        """
        if authenticated and not self._token_provider():
            return RequestResult.failed(FailureKind.UNAUTHORIZED, "You are not signed in.")

        url = self.url_for(path)
        kwargs: dict[str, Any] = {"headers": self._headers(authenticated)}
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if json_body is not None:
            kwargs["json"] = json_body
        if files:
            kwargs["files"] = files

        try:
            response = self._send(method.upper(), url, **kwargs)
        except requests.Timeout as e:
            logger.warning("backend_timeout", method=method, path=path, error=str(e))
            return RequestResult.failed(FailureKind.TIMEOUT, f"Request timed out: {e}")
        except requests.RequestException as e:
            logger.warning("backend_unreachable", method=method, path=path, error=str(e))
            return RequestResult.failed(FailureKind.NETWORK, f"Cannot reach server: {e}")

        status = response.status_code
        if not 200 <= status < 300:
            message = _error_message(response)
            logger.info("backend_error_status", method=method, path=path, status=status)
            return RequestResult.failed(_classify_status(status), message, status_code=status)

        if expect == EXPECT_BYTES:
            return RequestResult.success(response.content, status_code=status)

        if not response.content:
            return RequestResult.success(None, status_code=status)
        try:
            data = response.json()
        except (ValueError, json.JSONDecodeError):
            return RequestResult.failed(
                FailureKind.DECODE,
                "Server returned an invalid JSON response",
                status_code=status,
            )
        return RequestResult.success(data, status_code=status)

    async def acall(self, method: str, path: str, **kwargs) -> RequestResult:
        """Async variant of call(); the blocking request runs in a worker thread."""
        return await asyncio.to_thread(self.call, method, path, **kwargs)

    def close(self) -> None:
        self._http.close()
