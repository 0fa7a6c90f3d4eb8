"""
Session Services Package

The signed-in session and where it is persisted between runs.
"""

from gigledger.services.session.context import SessionContext
from gigledger.services.session.file_store import InMemorySessionStore, JsonFileSessionStore
from gigledger.services.session.interface import (
    SessionError,
    SessionStoreError,
    SessionStoreInterface,
)

__all__ = [
    # Context
    "SessionContext",
    # Interfaces
    "SessionStoreInterface",
    # Exceptions
    "SessionError",
    "SessionStoreError",
    # Implementations
    "InMemorySessionStore",
    "JsonFileSessionStore",
]
