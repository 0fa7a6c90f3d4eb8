"""
Abstract Session Store Interface

DESIGN DECISION: The durable session (token, userId, user, username) is
kept behind a tiny key/value interface. This allows us to:
1. Persist to a JSON file for the desktop app
2. Use an in-memory store for testing
3. Keep SessionContext as the only code that writes session state
"""

from abc import ABC, abstractmethod
from typing import Optional


class SessionError(Exception):
    """Base exception for session errors."""
    pass


class SessionStoreError(SessionError):
    """The session store could not be read or written."""
    pass


class SessionStoreInterface(ABC):
    """
    Key/value persistence for the signed-in session.

    Only SessionContext calls these methods.
    """

    @abstractmethod
    def load(self) -> Optional[dict]:
        """
        Read the stored session keys.

        Returns:
            The stored mapping, or None if nothing is stored
        """
        pass

    @abstractmethod
    def save(self, data: dict) -> None:
        """
        Replace the stored session keys.

        Raises:
            SessionStoreError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every stored session key."""
        pass
