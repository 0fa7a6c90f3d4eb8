"""Services package."""

from gigledger.services.backend import (
    BackendClient,
    BackendError,
    BackendRequestError,
    GigApi,
    MilestoneApi,
    RatesApi,
    TransactionApi,
    UserApi,
)
from gigledger.services.session import (
    InMemorySessionStore,
    JsonFileSessionStore,
    SessionContext,
    SessionError,
    SessionStoreError,
    SessionStoreInterface,
)

__all__ = [
    # Backend
    "BackendClient",
    "BackendError",
    "BackendRequestError",
    "GigApi",
    "MilestoneApi",
    "RatesApi",
    "TransactionApi",
    "UserApi",
    # Session
    "InMemorySessionStore",
    "JsonFileSessionStore",
    "SessionContext",
    "SessionError",
    "SessionStoreError",
    "SessionStoreInterface",
]
