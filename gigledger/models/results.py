"""
Tagged Request Results

DESIGN DECISION: Every backend call returns a RequestResult instead of
raising. Callers check `ok` and read either `data` or the failure kind,
so no view needs its own try/except around network code.
"""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict


class FailureKind(str, Enum):
    """Why a request did not produce usable data."""
    NETWORK = "network"            # Could not reach the backend
    TIMEOUT = "timeout"            # Backend did not answer in time
    UNAUTHORIZED = "unauthorized"  # 401/403, session is invalid
    NOT_FOUND = "not_found"        # 404
    CLIENT_ERROR = "client_error"  # Other 4xx, request was rejected
    SERVER_ERROR = "server_error"  # 5xx
    DECODE = "decode"              # Response body was not what we expected
    VALIDATION = "validation"      # Rejected client-side, nothing was sent
    STORAGE = "storage"            # Session could not be saved or cleared locally


class BackendError(Exception):
    """Base exception for backend client errors."""
    pass


class BackendRequestError(BackendError):
    """Raised by RequestResult.unwrap() on a failed result."""

    def __init__(self, result: "RequestResult"):
        self.result = result
        super().__init__(result.message or result.failure.value)

    @property
    def failure(self) -> "FailureKind":
        return self.result.failure


class RequestResult(BaseModel):
    """Outcome of one backend call."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    data: Any = None
    failure: Optional[FailureKind] = None
    message: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def success(cls, data: Any = None, status_code: Optional[int] = None) -> "RequestResult":
        return cls(ok=True, data=data, status_code=status_code)

    @classmethod
    def failed(
        cls,
        failure: FailureKind,
        message: str,
        status_code: Optional[int] = None,
    ) -> "RequestResult":
        return cls(ok=False, failure=failure, message=message, status_code=status_code)

    def map(self, fn: Callable[[Any], Any]) -> "RequestResult":
        """
        Transform the data of a successful result.

        If the transform raises ValueError (for example a pydantic
        ValidationError) the result becomes a DECODE failure.
        """
        if not self.ok:
            return self
        try:
            return RequestResult.success(fn(self.data), status_code=self.status_code)
        except ValueError as e:
            return RequestResult.failed(
                FailureKind.DECODE,
                f"Unexpected response from server: {e}",
                status_code=self.status_code,
            )

    def unwrap(self) -> Any:
        """Return the data or raise BackendRequestError."""
        if not self.ok:
            raise BackendRequestError(self)
        return self.data

    def data_or(self, default: Any) -> Any:
        """Return the data, or `default` if the request failed."""
        return self.data if self.ok else default

    @property
    def user_message(self) -> str:
        """Short text suitable for an inline error banner."""
        if self.ok:
            return ""
        if self.failure == FailureKind.NETWORK:
            return "Cannot reach the server. Check your connection and try again."
        if self.failure == FailureKind.TIMEOUT:
            return "The server took too long to answer. Please try again."
        if self.failure == FailureKind.UNAUTHORIZED:
            return "Your session has expired. Please sign in again."
        return self.message or "Something went wrong."
