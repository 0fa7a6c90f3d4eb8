"""
Tests for the session context and session stores.
"""

import json

import pytest

from gigledger.models import LoginResponse, User
from gigledger.services.session import (
    InMemorySessionStore,
    JsonFileSessionStore,
    SessionContext,
    SessionError,
    SessionStoreError,
)

from conftest import ReadOnlySessionStore


def login_response(token="abc", user_id="u1", username="maya"):
    return LoginResponse(token=token, user=User(id=user_id, username=username))


class TestSessionContext:
    """Tests for SessionContext."""

    def test_starts_signed_out(self):
        context = SessionContext(InMemorySessionStore())
        assert not context.is_authenticated
        assert context.token is None
        assert context.auth_headers() == {}

    def test_restores_stored_session(self, session_context):
        assert session_context.is_authenticated
        assert session_context.user_id == "u1"
        assert session_context.username == "maya"
        assert session_context.auth_headers() == {"Authorization": "Bearer test-token"}

    def test_stored_session_without_user_id_is_ignored(self):
        context = SessionContext(InMemorySessionStore({"token": "abc"}))
        assert not context.is_authenticated

    def test_sign_in_persists_every_key(self):
        store = InMemorySessionStore()
        context = SessionContext(store)
        session = context.sign_in(login_response())
        assert session.user_id == "u1"
        assert store.data["token"] == "abc"
        assert store.data["userId"] == "u1"
        assert store.data["username"] == "maya"
        assert store.data["user"]["_id"] == "u1"

    def test_session_survives_restart(self):
        store = InMemorySessionStore()
        SessionContext(store).sign_in(login_response())
        restarted = SessionContext(store)
        assert restarted.token == "abc"
        assert restarted.user.username == "maya"

    def test_complete_oauth(self):
        store = InMemorySessionStore()
        context = SessionContext(store)
        session = context.complete_oauth({"token": "oauth-token", "userId": "u7"})
        assert session.token == "oauth-token"
        assert context.user_id == "u7"
        assert store.data["userId"] == "u7"

    def test_complete_oauth_accepts_list_values(self):
        context = SessionContext(InMemorySessionStore())
        context.complete_oauth({"token": ["t1"], "userId": ["u1"]})
        assert context.token == "t1"

    @pytest.mark.parametrize("params", [
        {"token": "abc"},
        {"userId": "u1"},
        {"token": "", "userId": "u1"},
        {},
    ])
    def test_complete_oauth_requires_both_params(self, params):
        store = InMemorySessionStore()
        context = SessionContext(store)
        with pytest.raises(SessionError):
            context.complete_oauth(params)
        assert store.data is None
        assert not context.is_authenticated

    def test_update_user(self, session_context):
        session_context.update_user(User(id="u1", username="maya.k", email="k@example.com"))
        assert session_context.username == "maya.k"
        assert session_context.user.email == "k@example.com"

    def test_update_user_requires_session(self):
        with pytest.raises(SessionError):
            SessionContext(InMemorySessionStore()).update_user(User(id="u1"))

    def test_sign_out_clears_store(self):
        store = InMemorySessionStore()
        context = SessionContext(store)
        context.sign_in(login_response())
        context.sign_out()
        assert store.data is None
        assert not context.is_authenticated
        assert not SessionContext(store).is_authenticated

    def test_failed_clear_keeps_session(self):
        """If the stored keys cannot be removed the user is still signed in."""
        context = SessionContext(ReadOnlySessionStore({"token": "abc", "userId": "u1"}))
        with pytest.raises(SessionStoreError):
            context.sign_out()
        assert context.is_authenticated
        assert context.token == "abc"


class TestJsonFileSessionStore:
    """Tests for the file-backed store."""

    def test_missing_file(self, tmp_path):
        assert JsonFileSessionStore(tmp_path / "session.json").load() is None

    def test_save_load_clear(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        store = JsonFileSessionStore(path)
        store.save({"token": "abc", "userId": "u1"})
        assert json.loads(path.read_text()) == {"token": "abc", "userId": "u1"}
        assert store.load() == {"token": "abc", "userId": "u1"}
        store.clear()
        assert not path.exists()
        store.clear()

    def test_corrupt_file_is_no_session(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert JsonFileSessionStore(path).load() is None

    def test_non_object_file_is_no_session(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("[1, 2]")
        assert JsonFileSessionStore(path).load() is None

    def test_context_over_file_store(self, tmp_path):
        store = JsonFileSessionStore(tmp_path / "session.json")
        SessionContext(store).sign_in(login_response(token="file-token"))
        assert SessionContext(JsonFileSessionStore(tmp_path / "session.json")).token == "file-token"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
