"""Local session persistence.

``SessionStore`` is a small JSON key/value file that caches the auth
session, the signed-in worker's identity and the id of the shift that is
currently open, so a later invocation can pick up where the last left off.
"""

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import jwt
from pydantic import BaseModel

from .exceptions import ConfigError
from .models.worker import Worker, is_valid_uuid

AUTH_SESSION_KEY = "auth_session"
WORKER_ID_KEY = "worker_id"
WORKER_NAME_KEY = "worker_name"
WORKER_EMAIL_KEY = "worker_email"
CURRENT_SHIFT_KEY = "current_shift_id"

WORKER_KEYS = (WORKER_ID_KEY, WORKER_NAME_KEY, WORKER_EMAIL_KEY)


class AuthSession(BaseModel):
    """Session returned by the auth service."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    user_id: Optional[str] = None
    email: Optional[str] = None

    def is_expired(self, leeway: int = 60, now: Optional[float] = None) -> bool:
        """Check whether the access token expires within ``leeway`` seconds."""
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return self.expires_at - current <= leeway

    @classmethod
    def from_token_response(cls, data: Dict[str, Any]) -> "AuthSession":
        """Build a session from an auth token response.

        ``expires_at`` is taken from the response, then from ``expires_in``,
        and finally from the access token's ``exp`` claim.
        """
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("Token response has no access_token")

        claims: Dict[str, Any] = {}
        try:
            claims = jwt.decode(access_token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            pass

        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = int(time.time()) + int(data["expires_in"])
        if expires_at is None and claims.get("exp") is not None:
            expires_at = int(claims["exp"])

        user = data.get("user") or {}
        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_at=int(expires_at) if expires_at is not None else None,
            user_id=user.get("id") or claims.get("sub"),
            email=user.get("email") or claims.get("email"),
        )


class SessionStore:
    """JSON-file backed key/value store for session state."""

    def __init__(self, path: Path) -> None:
        """Initialize session store.

        Args:
            path: Location of the session file
        """
        self.path = Path(path)
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read session file {self.path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Session file {self.path} is malformed")
        return data

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Owner-only from creation
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(self._data, f, indent=2)
            # An existing file keeps its old mode through O_CREAT
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise ConfigError(f"Failed to write session file {self.path}: {e}")

    # Key/value API
    def get_item(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove_item(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def multi_get(self, keys: Iterable[str]) -> List[Tuple[str, Optional[Any]]]:
        return [(key, self._data.get(key)) for key in keys]

    def multi_set(self, pairs: Iterable[Tuple[str, Any]]) -> None:
        self._data.update(dict(pairs))
        self._save()

    def multi_remove(self, keys: Iterable[str]) -> None:
        removed = False
        for key in keys:
            if key in self._data:
                del self._data[key]
                removed = True
        if removed:
            self._save()

    def clear(self) -> None:
        self._data = {}
        self._save()

    # Auth session
    def save_auth_session(self, session: AuthSession) -> None:
        self.set_item(AUTH_SESSION_KEY, session.model_dump())

    def load_auth_session(self) -> Optional[AuthSession]:
        data = self.get_item(AUTH_SESSION_KEY)
        if not data:
            return None
        try:
            return AuthSession(**data)
        except ValueError:
            self.remove_item(AUTH_SESSION_KEY)
            return None

    def clear_auth_session(self) -> None:
        self.remove_item(AUTH_SESSION_KEY)

    # Worker identity
    def save_worker(self, worker: Worker) -> None:
        self.multi_set([
            (WORKER_ID_KEY, worker.id),
            (WORKER_NAME_KEY, worker.name),
            (WORKER_EMAIL_KEY, worker.email),
        ])

    def load_worker(self) -> Optional[Worker]:
        """Get the stored worker, clearing an invalid stored identity."""
        values = dict(self.multi_get(WORKER_KEYS))
        worker_id = values[WORKER_ID_KEY]
        if not worker_id:
            return None
        if not is_valid_uuid(worker_id):
            self.clear_worker()
            return None
        return Worker(
            id=worker_id,
            name=values[WORKER_NAME_KEY],
            email=values[WORKER_EMAIL_KEY],
        )

    def clear_worker(self) -> None:
        self.multi_remove(WORKER_KEYS)

    # Current shift
    @property
    def current_shift_id(self) -> Optional[str]:
        return self.get_item(CURRENT_SHIFT_KEY)

    @current_shift_id.setter
    def current_shift_id(self, shift_id: Optional[str]) -> None:
        if shift_id is None:
            self.remove_item(CURRENT_SHIFT_KEY)
        else:
            self.set_item(CURRENT_SHIFT_KEY, shift_id)
