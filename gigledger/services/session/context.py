"""
Session Context

DESIGN DECISION: One explicit object owns the signed-in session and is
passed to every flow. It is the only writer of durable session state:
sign in, OAuth completion, profile updates and sign out all go through
it, and each change is persisted immediately.
"""

from typing import Mapping, Optional

import structlog

from gigledger.models.user import AuthSession, LoginResponse, User
from gigledger.services.session.interface import SessionError, SessionStoreInterface


logger = structlog.get_logger("gigledger.session")


def _first(value) -> Optional[str]:
    """Query parameters may arrive as a list of values."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class SessionContext:
    """
    The current user's session.

    Restored from the store on construction, so a restart keeps the
    user signed in as long as the stored token and user id are present.
    """

    def __init__(self, store: SessionStoreInterface):
        self._store = store
        self._session: Optional[AuthSession] = None
        stored = store.load()
        if stored:
            try:
                self._session = AuthSession.from_storage(stored)
            except ValueError as e:
                logger.warning("stored_session_invalid", error=str(e))
                self._session = None

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id if self._session else None

    @property
    def user(self) -> Optional[User]:
        return self._session.user if self._session else None

    @property
    def username(self) -> Optional[str]:
        if not self._session:
            return None
        if self._session.username:
            return self._session.username
        return self._session.user.username if self._session.user else None

    def auth_headers(self) -> dict:
        """Authorization header for the current token, {} when signed out."""
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def sign_in(self, response: LoginResponse) -> AuthSession:
        """Start a session from a successful password login."""
        session = AuthSession(
            token=response.token,
            user_id=response.user.id,
            user=response.user,
            username=response.user.username,
        )
        self._persist(session)
        return session

    def complete_oauth(self, query_params: Mapping) -> AuthSession:
        """
        Start a session from the OAuth callback's query parameters.

        Raises:
            SessionError: If `token` or `userId` is missing. Nothing is
                stored in that case.
        """
        token = _first(query_params.get("token"))
        user_id = _first(query_params.get("userId"))
        if not token or not user_id:
            raise SessionError("Sign in did not complete: token or user id missing")
        session = AuthSession(
            token=token,
            user_id=user_id,
            user=User(id=user_id),
        )
        self._persist(session)
        return session

    def update_user(self, user: User) -> None:
        """Replace the stored user record, e.g. after /users/me or a profile edit."""
        if self._session is None:
            raise SessionError("Not signed in")
        self._persist(self._session.model_copy(update={
            "user": user,
            "username": user.username or self._session.username,
        }))

    def sign_out(self) -> None:
        """
        Clear every stored key, then forget the session.

        Raises:
            SessionStoreError: If the stored keys could not be removed. The
                session stays signed in so memory and storage agree.
        """
        self._store.clear()
        self._session = None

    def _persist(self, session: AuthSession) -> None:
        self._store.save(session.to_storage())
        self._session = session
