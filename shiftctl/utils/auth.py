"""Authentication utilities for the workforce backend.

This module manages the anonymous API key and the signed-in user's session,
and builds the headers every backend request carries.
"""

from typing import Dict, Optional

from ..exceptions import AuthenticationError, SessionExpiredError
from ..session import AuthSession, SessionStore


class AuthManager:
    """Session-aware header builder for backend requests."""

    def __init__(
        self,
        anon_key: str,
        session_store: Optional[SessionStore] = None,
        expiry_leeway: int = 60,
    ) -> None:
        """Initialize authentication manager.

        Args:
            anon_key: Public (anonymous) API key of the backend project
            session_store: Store holding the persisted session, if any
            expiry_leeway: Seconds before expiry at which a session counts as expired

        Raises:
            AuthenticationError: If no API key is provided
        """
        if not anon_key:
            raise AuthenticationError("An anonymous API key is required")

        self.anon_key = anon_key
        self.session_store = session_store
        self.expiry_leeway = expiry_leeway
        self._session: Optional[AuthSession] = None
        if session_store:
            self._session = session_store.load_auth_session()

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    def set_session(self, session: AuthSession) -> None:
        """Replace the current session and persist it."""
        self._session = session
        if self.session_store:
            self.session_store.save_auth_session(session)

    def clear_session(self) -> None:
        """Forget the current session."""
        self._session = None
        if self.session_store:
            self.session_store.clear_auth_session()

    def get_session(self) -> Optional[AuthSession]:
        """Get the current session if it is still valid.

        A missing session and an expired one are treated the same way:
        both return None and the caller has to sign in again.
        """
        if self._session is None or self._session.is_expired(self.expiry_leeway):
            return None
        return self._session

    def require_session(self) -> AuthSession:
        """Get the current valid session.

        Raises:
            SessionExpiredError: If the stored session has expired
            AuthenticationError: If nobody is signed in
        """
        if self._session is None:
            raise AuthenticationError("Not logged in. Run 'shiftctl auth login' first.")
        if self._session.is_expired(self.expiry_leeway):
            raise SessionExpiredError("Session expired. Please log in again.")
        return self._session

    def get_headers(self, require_session: bool = False) -> Dict[str, str]:
        """Get headers for a backend request.

        Args:
            require_session: Whether the request must run as the signed-in user

        Returns:
            Dictionary of HTTP headers
        """
        if require_session:
            token = self.require_session().access_token
        else:
            session = self.get_session()
            token = session.access_token if session else self.anon_key

        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
