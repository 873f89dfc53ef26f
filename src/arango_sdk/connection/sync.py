"""
Blocking Connection Implementation for ArangoDB SDK.

Runs every operation on the calling thread; each network boundary blocks.
"""

from typing import Any, Self, TypeVar

from ..config import ArangoConfig, AuthMode
from ..exceptions import TransportError
from ..protocol.flow import Flow, run_sync
from ..transport import BaseTransport, create_transport
from .base import BaseArangoConnection

T = TypeVar("T")


class ArangoConnection(BaseArangoConnection):
    """
    Blocking connection to ArangoDB.

    Usage:
        with ArangoConnection.establish_basic_auth(url, "root", "secret") as conn:
            db = conn.db("shop")
            for order in db.aql_str("FOR o IN orders RETURN o"):
                ...
    """

    is_async = False

    def __init__(
        self,
        config: ArangoConfig | None = None,
        transport: BaseTransport | None = None,
        **options: Any,
    ):
        """
        Initialize a blocking connection.

        Args:
            config: Connection configuration
            transport: Engine to use instead of the one named by ``config.engine``
            **options: ``ArangoConfig`` fields, used when ``config`` is omitted
        """
        super().__init__(config, **options)
        self._transport = transport

    def connect(self) -> Self:
        """Open the transport. Returns self for fluent API."""
        if self._connected:
            return self
        if self._transport is None:
            self._transport = create_transport(self._config)
        self._connected = True
        return self

    def close(self) -> None:
        """Close the transport."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        self._connected = False

    def __enter__(self) -> Self:
        return self.connect()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def run(self, flow: Flow[T]) -> T:
        if not self._connected or self._transport is None:
            flow.close()
            raise TransportError("Not connected. Call connect() first.")
        return run_sync(flow, self._transport.send)

    # Establishment helpers

    @classmethod
    def _establish(cls, config: ArangoConfig, login: bool = False) -> Self:
        conn = cls(config).connect()
        try:
            if login:
                conn.login()
            conn.negotiate()
        except BaseException:
            conn.close()
            raise
        return conn

    @classmethod
    def establish_without_auth(cls, url: str = "http://localhost:8529", **options: Any) -> Self:
        """Connect without credentials and check that the peer is ArangoDB."""
        return cls._establish(ArangoConfig(url=url, auth_mode=AuthMode.NONE, **options))

    @classmethod
    def establish_basic_auth(cls, url: str, username: str, password: str, **options: Any) -> Self:
        """Connect with Basic auth and check that the peer is ArangoDB."""
        config = ArangoConfig(url=url, username=username, password=password, auth_mode=AuthMode.BASIC, **options)
        return cls._establish(config)

    @classmethod
    def establish_jwt(cls, url: str, username: str, password: str, **options: Any) -> Self:
        """Connect, log in for a JWT and check that the peer is ArangoDB."""
        config = ArangoConfig(url=url, username=username, password=password, auth_mode=AuthMode.JWT, **options)
        return cls._establish(config, login=True)
