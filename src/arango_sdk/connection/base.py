"""
Base Connection Interface for ArangoDB SDK.

Holds everything the blocking and the asyncio connection share: the
configuration, the session, request construction and every server operation
(written once, as flows). Subclasses only decide how a flow is driven.
"""

import functools
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar
from urllib.parse import quote

from ..auth import BearerCredential, SessionManager
from ..config import ArangoConfig
from ..exceptions import DeserializationError
from ..protocol.envelope import RequestEnvelope, dumps, parse_envelope
from ..protocol.flow import Flow
from ..types import ServerRole, ServerVersion, validate

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

SYSTEM_DATABASE = "_system"


class _Default:
    def __repr__(self) -> str:
        return "<connection database>"


DEFAULT_DATABASE: Any = _Default()
"""Sentinel: scope a request to the connection's configured database."""


def quote_segment(name: str) -> str:
    """Percent-encode a database or collection name for use as one path segment."""
    return quote(name, safe="")


def operation(method: Callable[P, Flow[T]]) -> Callable[P, Any]:
    """
    Turn a flow-returning method into a runnable operation.

    The decorated method runs its flow on ``self.connection``: the result is
    returned directly on a blocking connection and as an awaitable on an
    asyncio connection.
    """

    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
        owner = args[0]
        return owner.connection.run(method(*args, **kwargs))  # type: ignore[attr-defined]

    return wrapper


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BaseArangoConnection(ABC):
    """
    Abstract base class for ArangoDB connections.

    A connection is immutable after construction except for the session's
    cached bearer token and the server version learned on first use.
    """

    is_async: bool = False

    def __init__(self, config: ArangoConfig | None = None, **options: Any):
        """
        Initialize connection parameters. No network call is made here.

        Args:
            config: Connection configuration
            **options: ``ArangoConfig`` fields, used when ``config`` is omitted
        """
        if config is None:
            config = ArangoConfig(**options)
        elif options:
            raise TypeError("Pass either config or keyword options, not both.")

        self._config = config
        self._hosts = itertools.cycle(config.urls)
        self._hosts_lock = threading.Lock()
        self._session = SessionManager(
            config.auth_mode,
            username=config.username,
            password=config.password,
            url_for=self.url_for,
        )
        self._connected = False
        self._version: ServerVersion | None = None
        self._role: ServerRole | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.url} db={self.database_name!r} auth={self._config.auth_mode}>"

    # Properties

    @property
    def connection(self) -> "BaseArangoConnection":
        return self

    @property
    def config(self) -> ArangoConfig:
        return self._config

    @property
    def url(self) -> str:
        """First configured base URL."""
        return self._config.urls[0]

    @property
    def database_name(self) -> str:
        return self._config.database

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def is_connected(self) -> bool:
        """Check if the transport is open."""
        return self._connected

    @property
    def version(self) -> ServerVersion | None:
        """Server version, once ``server_version()`` has run."""
        return self._version

    @property
    def role(self) -> ServerRole | None:
        """Server role, once ``server_role()`` has run."""
        return self._role

    # Driving flows

    @abstractmethod
    def run(self, flow: Flow[T]) -> Any:
        """
        Drive ``flow`` through the transport.

        Returns the flow's result on blocking connections and an awaitable of
        it on asyncio connections.
        """
        ...

    # Request construction

    def _next_host(self) -> str:
        with self._hosts_lock:
            return next(self._hosts)

    def url_for(self, path: str, database: str | None = None) -> str:
        """
        Build an absolute URL.

        Args:
            path: Path relative to the database root, e.g. ``_api/cursor``
            database: Database to scope to; ``None`` addresses the server root
        """
        path = path.lstrip("/")
        base = self._next_host()
        if database is None:
            return f"{base}/{path}"
        return f"{base}/_db/{quote_segment(database)}/{path}"

    def build_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        database: str | None = DEFAULT_DATABASE,
        expected: frozenset[int] | None = None,
    ) -> RequestEnvelope:
        """
        Build a fully addressed request carrying the current credential.

        Args:
            method: HTTP method
            path: Path relative to the database root; name segments must
                already be encoded with ``quote_segment``
            params: Query parameters (``None`` values are dropped)
            body: JSON-serialisable body
            database: Database to scope to; defaults to the configured one,
                ``None`` addresses the server root
            expected: Success status codes for this endpoint

        Returns:
            A self-contained ``RequestEnvelope``
        """
        if database is DEFAULT_DATABASE:
            database = self._config.database

        headers = {"Accept": "application/json"}
        encoded: bytes | None = None
        if body is not None:
            encoded = dumps(body)
            headers["Content-Type"] = "application/json"
        authorization = self._session.authorization()
        if authorization:
            headers["Authorization"] = authorization

        request = RequestEnvelope(
            method=method.upper(),
            url=self.url_for(path, database),
            params={k: _format_param(v) for k, v in (params or {}).items() if v is not None},
            body=encoded,
            headers=headers,
        )
        if expected:
            request = replace(request, expected=frozenset(expected))
        return request

    def call(self, request: RequestEnvelope) -> Flow[dict[str, Any]]:
        """Send ``request`` through the session and unwrap the reply envelope."""
        response = yield from self._session.execute(request)
        return parse_envelope(response, request.expected)

    # Server operations

    @operation
    def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        database: str | None = DEFAULT_DATABASE,
    ) -> Flow[dict[str, Any]]:
        """Perform an arbitrary request against the ArangoDB REST API."""
        return (yield from self.call(self.build_request(method, path, params, body, database)))

    @operation
    def login(self) -> Flow[BearerCredential]:
        """Obtain a JWT now instead of before the first request."""
        return (yield from self._session.login())

    def _server_version(self, details: bool = False) -> Flow[ServerVersion]:
        """
        Fetch the server version and remember it on the connection.

        Raises:
            DeserializationError: If the peer does not identify as ArangoDB
        """
        data = yield from self.call(
            self.build_request("GET", "_api/version", params={"details": details or None}, database=None)
        )
        version = validate(ServerVersion, data)
        if version.server != "arango":
            raise DeserializationError(f"Peer is not an ArangoDB server (server={version.server!r})")
        self._version = version
        logger.debug(f"Server version {version.version} ({version.license})")
        return version

    def _server_role(self) -> Flow[ServerRole]:
        data = yield from self.call(self.build_request("GET", "_admin/server/role", database=None))
        try:
            role = ServerRole(data.get("role", "UNDEFINED"))
        except ValueError as e:
            raise DeserializationError(f"Unknown server role {data.get('role')!r}") from e
        self._role = role
        return role

    @operation
    def negotiate(self) -> Flow[ServerVersion]:
        """Learn the server version and role in one go."""
        version = yield from self._server_version()
        yield from self._server_role()
        return version

    @operation
    def server_version(self, details: bool = False) -> Flow[ServerVersion]:
        """Fetch the server version (``GET /_api/version``)."""
        return (yield from self._server_version(details))

    @operation
    def server_role(self) -> Flow[ServerRole]:
        """Fetch the server role (single server or cluster member)."""
        return (yield from self._server_role())

    @operation
    def accessible_databases(self) -> Flow[list[str]]:
        """Names of the databases the current user can access."""
        data = yield from self.call(self.build_request("GET", "_api/database/user", database=SYSTEM_DATABASE))
        result = data.get("result")
        if not isinstance(result, list):
            raise DeserializationError(f"Expected a list of database names, got {result!r}")
        return [str(name) for name in result]

    @operation
    def create_database(self, name: str, users: list[dict[str, Any]] | None = None) -> Flow["Database"]:
        """Create a database and return its facade."""
        body: dict[str, Any] = {"name": name}
        if users:
            body["users"] = users
        yield from self.call(self.build_request("POST", "_api/database", body=body, database=SYSTEM_DATABASE))
        logger.info(f"Created database {name!r}")
        return self.db(name)

    @operation
    def drop_database(self, name: str) -> Flow[bool]:
        """Drop a database."""
        data = yield from self.call(
            self.build_request("DELETE", f"_api/database/{quote_segment(name)}", database=SYSTEM_DATABASE)
        )
        logger.info(f"Dropped database {name!r}")
        return bool(data.get("result", True))

    def db(self, name: str | None = None) -> "Database":
        """Database facade; no network call is made."""
        from ..database import Database

        return Database(self, name or self._config.database)
