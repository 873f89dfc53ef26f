"""
Credentials and session management for ArangoDB SDK.

Credentials are a tagged union of two frozen dataclasses, ``BasicCredential``
and ``BearerCredential``. ``SessionManager`` owns the current credential and
drives the authentication state machine::

    UNAUTHENTICATED -> AUTHENTICATED -> EXPIRED -> REAUTHENTICATING -> AUTHENTICATED

A request rejected with 401 in JWT mode causes exactly one
login and exactly one retry of that request. A second 401 raises
``AuthenticationError``.
"""

import base64
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from .config import AuthMode
from .exceptions import AuthenticationError, DeserializationError, ServerError
from .protocol.envelope import RequestEnvelope, ResponseEnvelope, dumps, parse_envelope
from .protocol.flow import Flow

logger = logging.getLogger(__name__)

LOGIN_PATH = "/_open/auth"


class AuthState(StrEnum):
    """Authentication state of a session."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    REAUTHENTICATING = "reauthenticating"


@dataclass(frozen=True)
class BasicCredential:
    """Username and password sent with every request."""

    username: str
    password: str = field(repr=False)
    kind: Literal["basic"] = "basic"


@dataclass(frozen=True)
class BearerCredential:
    """A JWT obtained from ``POST /_open/auth``."""

    token: str = field(repr=False)
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    kind: Literal["bearer"] = "bearer"


Credential = BasicCredential | BearerCredential


def authorization_header(credential: Credential | None) -> str | None:
    """Render the ``Authorization`` header value for a credential."""
    match credential:
        case BasicCredential(username=username, password=password):
            raw = f"{username}:{password}".encode()
            return f"Basic {base64.b64encode(raw).decode('ascii')}"
        case BearerCredential(token=token):
            return f"Bearer {token}"
        case _:
            return None


class SessionManager:
    """
    Holds the credential of one connection and applies the retry-once policy.

    The only state shared between concurrent requests is the current
    credential; it is swapped under a lock. Each request remembers the
    credential it was sent with, so after a 401 a request whose token was
    already replaced by another caller just retries with the fresh token
    instead of logging in again.
    """

    def __init__(
        self,
        mode: AuthMode,
        username: str | None = None,
        password: str | None = None,
        url_for: Callable[[str], str] | None = None,
    ):
        """
        Initialize a session. No network call is made here.

        Args:
            mode: Authentication mode
            username: Username for Basic or JWT auth
            password: Password for Basic or JWT auth
            url_for: Maps a server-global path (``/_open/auth``) to an absolute URL
        """
        if mode is not AuthMode.NONE and not username:
            raise ValueError(f"auth mode '{mode}' requires a username")
        if mode is AuthMode.JWT and url_for is None:
            raise ValueError("JWT auth needs url_for to address the login endpoint")

        self.mode = mode
        self._username = username
        self._password = password or ""
        self._url_for = url_for
        self._lock = threading.Lock()
        self._state = AuthState.UNAUTHENTICATED
        self._credential: Credential | None = None
        if mode is AuthMode.BASIC and username:
            self._credential = BasicCredential(username, self._password)

    @property
    def state(self) -> AuthState:
        """Current authentication state."""
        return self._state

    @property
    def credential(self) -> Credential | None:
        """Credential the next request will carry."""
        return self._credential

    @property
    def username(self) -> str | None:
        return self._username

    def authorization(self) -> str | None:
        """Current ``Authorization`` header value."""
        return authorization_header(self._credential)

    def _authorize(self, request: RequestEnvelope, credential: Credential | None) -> RequestEnvelope:
        return request.with_header("Authorization", authorization_header(credential))

    def _needs_login(self) -> bool:
        return self.mode is AuthMode.JWT and self._credential is None

    def _expire(self, stale: Credential | None) -> None:
        with self._lock:
            if self._credential is stale:
                if isinstance(stale, BearerCredential):
                    self._credential = None
                self._state = AuthState.EXPIRED
        logger.info("Session credential rejected by server (401)")

    def login(self) -> Flow[BearerCredential]:
        """
        Obtain a fresh JWT via ``POST /_open/auth``.

        Raises:
            AuthenticationError: If the server rejects the credentials or
                the reply carries no token
        """
        if self.mode is not AuthMode.JWT or self._url_for is None:
            raise AuthenticationError(f"login requires JWT auth mode, session uses '{self.mode}'")

        with self._lock:
            reauth = self._state is AuthState.EXPIRED
            if reauth:
                self._state = AuthState.REAUTHENTICATING

        request = RequestEnvelope(
            method="POST",
            url=self._url_for(LOGIN_PATH),
            body=dumps({"username": self._username, "password": self._password}),
            headers={"Content-Type": "application/json"},
        )
        logger.debug(f"Logging in as {self._username!r}")
        try:
            response = yield request
            try:
                data = parse_envelope(response)
            except (ServerError, DeserializationError) as e:
                with self._lock:
                    self._credential = None
                    self._state = AuthState.UNAUTHENTICATED
                logger.warning(f"Login failed for user {self._username!r}: {e.message}")
                raise AuthenticationError(f"Login failed: {e.message}", code=e.code) from e

            token = data.get("jwt")
            if not isinstance(token, str) or not token:
                with self._lock:
                    self._state = AuthState.UNAUTHENTICATED
                raise AuthenticationError("Login reply did not contain a jwt", code=response.status_code)

            credential = BearerCredential(token=token)
            with self._lock:
                self._credential = credential
                self._state = AuthState.AUTHENTICATED
        finally:
            # A login cut short by the transport leaves the old token expired.
            with self._lock:
                if self._state is AuthState.REAUTHENTICATING:
                    self._state = AuthState.EXPIRED
        logger.info(f"{'Re-authenticated' if reauth else 'Authenticated'} as {self._username!r} (JWT)")
        return credential

    def execute(self, request: RequestEnvelope) -> Flow[ResponseEnvelope]:
        """
        Send ``request`` with the current credential, re-authenticating once on 401.

        Returns:
            The reply to the original request (or to its single retry)

        Raises:
            AuthenticationError: On a 401 outside JWT mode, on a failed
                re-login, or on a second 401 after re-authentication
        """
        if self._needs_login():
            yield from self.login()

        sent_with = self._credential
        response = yield self._authorize(request, sent_with)

        if response.status_code != 401:
            if self._state is not AuthState.AUTHENTICATED and sent_with is not None and response.is_success:
                self._state = AuthState.AUTHENTICATED
            return response

        if self.mode is not AuthMode.JWT:
            self._expire(sent_with)
            raise AuthenticationError(_reject_reason(response), code=401)

        # sent_with may be None when another caller expired the token after
        # the login check; that request still gets one login and retry.
        self._expire(sent_with)
        with self._lock:
            refreshed = self._credential is not None and self._credential is not sent_with
        if not refreshed:
            yield from self.login()
        else:
            logger.debug("Token already refreshed by a concurrent request, retrying")

        retry_with = self._credential
        response = yield self._authorize(request, retry_with)
        if response.status_code == 401:
            self._expire(retry_with)
            raise AuthenticationError(
                f"Request still unauthorized after re-authentication: {_reject_reason(response)}",
                code=401,
            )
        return response


def _reject_reason(response: ResponseEnvelope) -> str:
    try:
        data = response.json()
    except DeserializationError:
        return "unauthorized"
    if isinstance(data, dict):
        return str(data.get("errorMessage") or "unauthorized")
    return "unauthorized"


__all__ = [
    "AuthState",
    "BasicCredential",
    "BearerCredential",
    "Credential",
    "SessionManager",
    "authorization_header",
]
