"""Workforce backend API client.

This module provides a client for the hosted backend behind the workforce
app: the PostgREST table API, the auth (token) API and the storage API.
The client is synchronous and never retries on its own; retries belong to
``RetryExecutor`` in the service layer.
"""

import os
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from rich.console import Console
from urllib3.util.retry import Retry

from .config import ENV_ANON_KEY, ENV_API_URL, Profile
from .exceptions import (
    APIError,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestError,
    ServerError,
    ShiftCtlError,
    UnauthorizedError,
)
from .query import Query
from .session import AuthSession, SessionStore
from .utils.auth import AuthManager
from .utils.exceptions import NOT_FOUND_CODES

OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"
DEFAULT_DOCUMENT_BUCKET = "worker-documents"
SIGNED_URL_TTL = 3600  # seconds

JSONResult = Union[Dict[str, Any], List[Any], None]


class BackendClient:
    """Client for the workforce backend's REST, auth and storage APIs."""

    def __init__(
        self,
        profile: Optional[Profile] = None,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: int = 30,
        session_store: Optional[SessionStore] = None,
        debug: bool = False,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize backend client.

        Args:
            profile: Configuration profile
            url: Backend project URL (if profile not provided)
            anon_key: Anonymous API key (if profile not provided)
            timeout: Request timeout in seconds
            session_store: Store for the signed-in user's session
            debug: Print request and response diagnostics
            console: Console used for diagnostics

        Raises:
            ValueError: If insufficient configuration is provided
        """
        # Check for environment variable overrides
        env_url = os.getenv(ENV_API_URL)
        env_anon_key = os.getenv(ENV_ANON_KEY)

        if profile:
            self.url = str(env_url or profile.url).rstrip("/")
            self.anon_key = env_anon_key or profile.anon_key
            self.timeout = profile.timeout
            self.document_bucket = profile.document_bucket
        else:
            if not (env_url or url):
                raise ValueError(
                    f"Either profile, url parameter, or {ENV_API_URL} environment variable must be provided"
                )
            self.url = str(env_url or url).rstrip("/")
            self.anon_key = env_anon_key or anon_key
            self.timeout = timeout
            self.document_bucket = DEFAULT_DOCUMENT_BUCKET

        if not self.anon_key:
            raise ValueError(
                f"Either profile, anon_key parameter, or {ENV_ANON_KEY} environment variable must be provided"
            )

        self.debug = debug
        self.console = console or Console(stderr=True)

        self.auth = AuthManager(anon_key=self.anon_key, session_store=session_store)

        # Initialize requests session with connection pooling
        self.session = requests.Session()
        self._configure_session()

    def _configure_session(self) -> None:
        """Configure the requests session with pooled adapters."""
        # Retries are handled by RetryExecutor in the service layer
        retry_strategy = Retry(total=0, raise_on_status=False)

        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=20)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[DEBUG] {message}", style="dim", markup=False, highlight=False)

    @staticmethod
    def _parse_error_body(response: requests.Response) -> Dict[str, Any]:
        """Extract code/message/hint from the different error body shapes.

        PostgREST answers ``{code, message, details, hint}``, the auth API
        ``{error_code, msg}`` or ``{error, error_description}`` and storage
        ``{statusCode, error, message}``.
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        code = data.get("error_code")
        if code is None and isinstance(data.get("code"), str):
            code = data["code"]

        message = (
            data.get("message")
            or data.get("msg")
            or data.get("error_description")
            or data.get("error")
            or response.reason
            or f"HTTP {response.status_code}"
        )

        return {
            "code": code,
            "message": str(message),
            "hint": data.get("hint"),
            "details": data.get("details"),
            "data": data,
        }

    def _handle_response(self, response: requests.Response) -> JSONResult:
        """Handle API response and convert errors to appropriate exceptions.

        Args:
            response: Response object

        Returns:
            Parsed JSON response, or None for empty bodies

        Raises:
            APIError: For various HTTP error conditions
        """
        status = response.status_code
        if status < 400:
            if status == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise APIError(
                    "Backend returned a non-JSON response",
                    status_code=status,
                )

        error = self._parse_error_body(response)
        kwargs = {
            "status_code": status,
            "code": error["code"],
            "hint": error["hint"],
            "response_data": error["data"],
        }
        message = error["message"]

        if status == 400:
            raise BadRequestError(message, **kwargs)
        elif status == 401:
            raise UnauthorizedError(message, **kwargs)
        elif status == 403:
            raise ForbiddenError(message, **kwargs)
        elif status == 404:
            raise NotFoundError(message, **kwargs)
        elif status == 406 and error["code"] in NOT_FOUND_CODES:
            # Single-row read matched zero (or several) rows
            raise NotFoundError(message, **kwargs)
        elif status == 409:
            raise ConflictError(message, **kwargs)
        elif status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                message,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                **kwargs,
            )
        elif status >= 500:
            raise ServerError(message, **kwargs)

        raise APIError(message, **kwargs)

    def _send(
        self,
        method: str,
        path: str,
        require_session: bool = False,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Send a request, converting transport failures into ``NetworkError``.

        Args:
            method: HTTP method
            path: Path below the project URL
            require_session: Whether the request must carry a user session
            headers: Extra headers overriding the defaults
            **kwargs: Additional request parameters

        Returns:
            The raw response (errors not yet checked)

        Raises:
            NetworkError: If no response was received
            AuthenticationError: If a session is required but missing
        """
        request_headers = self.auth.get_headers(require_session=require_session)
        if headers:
            request_headers.update(headers)

        url = f"{self.url}{path}"
        self._debug(f"Making {method} request to {url}")
        if kwargs.get("params"):
            self._debug(f"Params: {kwargs['params']}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=request_headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request timed out after {self.timeout} seconds", timeout=True) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Network connection failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise RequestError(f"Request could not be sent: {e}") from e

        self._debug(f"Response status: {response.status_code}")
        return response

    def _make_request(self, method: str, path: str, **kwargs: Any) -> JSONResult:
        """Make an API request and return the parsed body."""
        response = self._send(method, path, **kwargs)
        return self._handle_response(response)

    # Table API

    def select(self, query: Query, require_session: bool = False) -> JSONResult:
        """Run a read query.

        Args:
            query: Query to run
            require_session: Whether the read must run as the signed-in user

        Returns:
            List of rows, or a single row when ``query.single()`` was used

        Raises:
            NotFoundError: If a single-row query matched no row
        """
        headers = {"Accept": OBJECT_MEDIA_TYPE} if query.is_single else None
        return self._make_request(
            "GET",
            f"/rest/v1/{query.table}",
            require_session=require_session,
            headers=headers,
            params=query.to_params(),
        )

    def insert(
        self,
        table: str,
        rows: Union[Dict[str, Any], List[Dict[str, Any]]],
        single: bool = False,
        require_session: bool = False,
    ) -> JSONResult:
        """Insert one or more rows and return the stored representation."""
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = OBJECT_MEDIA_TYPE
        return self._make_request(
            "POST",
            f"/rest/v1/{table}",
            require_session=require_session,
            headers=headers,
            json=rows,
        )

    def update(
        self,
        query: Query,
        values: Dict[str, Any],
        single: bool = False,
        require_session: bool = False,
    ) -> JSONResult:
        """Update the rows matched by ``query``'s filters."""
        if not query.filters:
            raise ValueError("Refusing to update without filters")
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = OBJECT_MEDIA_TYPE
        return self._make_request(
            "PATCH",
            f"/rest/v1/{query.table}",
            require_session=require_session,
            headers=headers,
            params=query.filter_params(),
            json=values,
        )

    def delete(self, query: Query, require_session: bool = False) -> None:
        """Delete the rows matched by ``query``'s filters."""
        if not query.filters:
            raise ValueError("Refusing to delete without filters")
        self._make_request(
            "DELETE",
            f"/rest/v1/{query.table}",
            require_session=require_session,
            params=query.filter_params(),
        )

    # Auth API

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Sign in and store the resulting session.

        Raises:
            UnauthorizedError: If the credentials are rejected
        """
        data = self._make_request(
            "POST",
            "/auth/v1/token",
            headers={"Authorization": f"Bearer {self.anon_key}"},
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if not isinstance(data, dict):
            raise AuthenticationError("Sign-in returned no session")
        session = AuthSession.from_token_response(data)
        self.auth.set_session(session)
        return session

    def refresh_session(self) -> AuthSession:
        """Exchange the stored refresh token for a new session.

        Raises:
            AuthenticationError: If there is no refresh token to use
        """
        current = self.auth.session
        if current is None or not current.refresh_token:
            raise AuthenticationError("No session to refresh. Run 'shiftctl auth login' first.")

        data = self._make_request(
            "POST",
            "/auth/v1/token",
            headers={"Authorization": f"Bearer {self.anon_key}"},
            params={"grant_type": "refresh_token"},
            json={"refresh_token": current.refresh_token},
        )
        if not isinstance(data, dict):
            raise AuthenticationError("Refresh returned no session")
        session = AuthSession.from_token_response(data)
        self.auth.set_session(session)
        return session

    def sign_out(self) -> None:
        """Revoke the current session remotely and forget it locally.

        The local session is cleared even when the remote call fails.
        """
        if self.auth.get_session() is None:
            self.auth.clear_session()
            return
        try:
            self._make_request("POST", "/auth/v1/logout", require_session=True)
        finally:
            self.auth.clear_session()

    def get_user(self) -> Dict[str, Any]:
        """Get the signed-in user."""
        data = self._make_request("GET", "/auth/v1/user", require_session=True)
        return data or {}

    # Storage API

    @staticmethod
    def _object_path(bucket: str, path: str) -> str:
        return f"{quote(bucket)}/{quote(path.lstrip('/'))}"

    def upload_file(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
        upsert: bool = False,
    ) -> Dict[str, Any]:
        """Upload an object to storage."""
        data = self._make_request(
            "POST",
            f"/storage/v1/object/{self._object_path(bucket, path)}",
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
            },
            data=content,
        )
        return data or {}

    def remove_files(self, bucket: str, paths: Sequence[str]) -> List[Any]:
        """Remove objects from storage."""
        data = self._make_request(
            "DELETE",
            f"/storage/v1/object/{quote(bucket)}",
            json={"prefixes": list(paths)},
        )
        return data or []

    def create_signed_url(self, bucket: str, path: str, expires_in: int = SIGNED_URL_TTL) -> str:
        """Create a time-limited URL for an object.

        Returns:
            Absolute signed URL
        """
        data = self._make_request(
            "POST",
            f"/storage/v1/object/sign/{self._object_path(bucket, path)}",
            json={"expiresIn": expires_in},
        )
        signed = (data or {}).get("signedURL") or (data or {}).get("signedUrl")
        if not signed:
            raise APIError("Storage returned no signed URL")
        if signed.startswith("http"):
            return signed
        return f"{self.url}/storage/v1{signed}"

    def download(self, bucket: str, path: str) -> bytes:
        """Download an object's bytes."""
        response = self._send("GET", f"/storage/v1/object/{self._object_path(bucket, path)}")
        if response.status_code >= 400:
            self._handle_response(response)
        return response.content

    def test_connection(self) -> bool:
        """Test connection to the backend.

        Returns:
            True if the auth service answered
        """
        try:
            self._make_request("GET", "/auth/v1/health")
            return True
        except ShiftCtlError:
            return False
