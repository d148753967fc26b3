"""Unit tests for session.py module.

Tests the AuthSession model and the JSON-file SessionStore holding the
worker identity, the auth session and the current shift id.
"""

import json
import os
import stat
import time

import jwt
import pytest
from unittest.mock import patch

from shiftctl.exceptions import ConfigError
from shiftctl.models import Worker
from shiftctl.session import AuthSession, SessionStore

WORKER_ID = "3f2b8c1e-4d5a-4b6c-8e9f-0a1b2c3d9f3a"


@pytest.fixture
def store(tmp_path):
    """Session store in a temporary directory."""
    return SessionStore(tmp_path / "session.json")


class TestAuthSession:
    """Test cases for the AuthSession model."""

    def test_from_token_response(self):
        """Test building a session from a token response."""
        session = AuthSession.from_token_response({
            "access_token": "access",
            "refresh_token": "refresh",
            "expires_at": 1700000000,
            "user": {"id": "user-1", "email": "jane@example.com"},
        })

        assert session.access_token == "access"
        assert session.refresh_token == "refresh"
        assert session.expires_at == 1700000000
        assert session.user_id == "user-1"
        assert session.email == "jane@example.com"

    def test_expires_in(self):
        """Test expires_in is converted to an absolute time."""
        before = int(time.time())

        session = AuthSession.from_token_response({"access_token": "access", "expires_in": 3600})

        assert before + 3600 <= session.expires_at <= int(time.time()) + 3600

    def test_claims_from_token(self):
        """Test expiry, subject and email fall back to the token's claims."""
        token = jwt.encode(
            {"sub": "user-2", "email": "sam@example.com", "exp": 1900000000},
            "test-secret",
            algorithm="HS256",
        )

        session = AuthSession.from_token_response({"access_token": token})

        assert session.expires_at == 1900000000
        assert session.user_id == "user-2"
        assert session.email == "sam@example.com"

    def test_opaque_token(self):
        """Test a token that is not a JWT still yields a session."""
        session = AuthSession.from_token_response({"access_token": "opaque"})

        assert session.expires_at is None
        assert session.user_id is None

    def test_missing_access_token(self):
        """Test a response without an access token is rejected."""
        with pytest.raises(ValueError):
            AuthSession.from_token_response({"refresh_token": "x"})

    def test_is_expired(self):
        """Test expiry with the leeway window."""
        session = AuthSession(access_token="a", expires_at=1000)

        assert session.is_expired(leeway=60, now=900) is False
        assert session.is_expired(leeway=60, now=940) is True
        assert session.is_expired(leeway=0, now=1000) is True

    def test_no_expiry_never_expires(self):
        """Test a session without an expiry never expires."""
        assert AuthSession(access_token="a").is_expired() is False


class TestSessionStore:
    """Test cases for the SessionStore class."""

    def test_empty_store(self, store):
        """Test a new store holds nothing."""
        assert store.load_worker() is None
        assert store.load_auth_session() is None
        assert store.current_shift_id is None

    def test_key_value_api(self, store):
        """Test the basic key/value operations."""
        store.set_item("a", 1)
        store.multi_set([("b", 2), ("c", 3)])

        assert store.get_item("a") == 1
        assert store.multi_get(["b", "c", "d"]) == [("b", 2), ("c", 3), ("d", None)]

        store.multi_remove(["a", "b"])
        store.remove_item("missing")
        assert store.get_item("a") is None
        assert store.get_item("c") == 3

        store.clear()
        assert store.get_item("c") is None

    def test_persistence(self, store, tmp_path):
        """Test values survive a new store instance."""
        store.save_worker(Worker(id=WORKER_ID, name="Jane Doe", email="jane@example.com"))
        store.current_shift_id = "shift-1"

        reopened = SessionStore(tmp_path / "session.json")

        assert reopened.load_worker() == Worker(id=WORKER_ID, name="Jane Doe", email="jane@example.com")
        assert reopened.current_shift_id == "shift-1"

    def test_file_permissions(self, store):
        """Test the session file is readable by the owner only."""
        store.set_item("a", 1)

        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_file_created_private(self, store):
        """Test the session file is owner-only from the moment it is created."""
        old_umask = os.umask(0o022)
        try:
            with patch("shiftctl.session.os.chmod") as chmod:
                store.set_item("access_token", "secret")
        finally:
            os.umask(old_umask)

        assert chmod.called
        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    def test_existing_file_made_private(self, store):
        """Test a session file left readable by others is tightened on save."""
        store.path.write_text("{}")
        os.chmod(store.path, 0o644)

        store.set_item("a", 1)

        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    def test_clear_worker(self, store):
        """Test clearing the worker removes every identity key."""
        store.save_worker(Worker(id=WORKER_ID, name="Jane Doe", email="jane@example.com"))
        store.clear_worker()

        assert store.load_worker() is None
        assert store.get_item("worker_name") is None
        assert store.get_item("worker_email") is None

    def test_invalid_stored_worker_is_cleared(self, store):
        """Test a stored id that is not a UUID is discarded."""
        store.multi_set([("worker_id", "not-a-uuid"), ("worker_name", "Jane")])

        assert store.load_worker() is None
        assert store.get_item("worker_name") is None

    def test_current_shift_id(self, store):
        """Test setting and clearing the current shift."""
        store.current_shift_id = "shift-1"
        assert store.current_shift_id == "shift-1"

        store.current_shift_id = None
        assert store.current_shift_id is None
        assert "current_shift_id" not in json.loads(store.path.read_text())

    def test_auth_session_round_trip(self, store):
        """Test saving and loading the auth session."""
        session = AuthSession(access_token="a", refresh_token="r", expires_at=123, user_id="u")

        store.save_auth_session(session)

        assert store.load_auth_session() == session
        store.clear_auth_session()
        assert store.load_auth_session() is None

    def test_malformed_auth_session_is_dropped(self, store):
        """Test an unreadable stored session is removed."""
        store.set_item("auth_session", {"refresh_token": "r"})

        assert store.load_auth_session() is None
        assert store.get_item("auth_session") is None

    def test_corrupt_file(self, tmp_path):
        """Test a corrupt session file raises a configuration error."""
        path = tmp_path / "session.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            SessionStore(path)

    def test_non_object_file(self, tmp_path):
        """Test a session file that is not a JSON object is rejected."""
        path = tmp_path / "session.json"
        path.write_text("[]")

        with pytest.raises(ConfigError):
            SessionStore(path)
