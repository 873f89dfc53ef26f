"""
ArangoDB SDK - A Python client for the ArangoDB HTTP API.

Supports:
- Blocking and asyncio connections sharing one implementation
- httpx (blocking and asyncio) and aiohttp (asyncio) HTTP engines
- Basic and JWT authentication with a single transparent re-login on expiry
- Lazily fetched, multi-batch AQL cursors
"""

from typing import Any

from .aql import AqlOptions, AqlQuery
from .auth import AuthState, BasicCredential, BearerCredential, Credential, SessionManager
from .config import ArangoConfig, AuthMode
from .connection import ArangoConnection, AsyncArangoConnection, BaseArangoConnection
from .cursor import Cursor
from .database import Database
from .exceptions import (
    ArangoDBError,
    AuthenticationError,
    CollectionNotFoundError,
    CursorNotFoundError,
    DeserializationError,
    ServerError,
    TransportError,
)
from .protocol import RequestEnvelope, ResponseEnvelope
from .transport import (
    AiohttpTransport,
    AsyncBaseTransport,
    AsyncHTTPXTransport,
    BaseTransport,
    HTTPXTransport,
)
from .types import (
    CollectionInfo,
    CollectionType,
    CursorExtra,
    DatabaseInfo,
    ServerRole,
    ServerVersion,
)

__version__ = "0.3.1"
__all__ = [
    # Connections
    "ArangoConnection",
    "AsyncArangoConnection",
    "BaseArangoConnection",
    "ArangoConfig",
    "AuthMode",
    # Facades
    "Database",
    "Cursor",
    "AqlQuery",
    "AqlOptions",
    # Auth
    "AuthState",
    "BasicCredential",
    "BearerCredential",
    "Credential",
    "SessionManager",
    # Transport
    "BaseTransport",
    "AsyncBaseTransport",
    "HTTPXTransport",
    "AsyncHTTPXTransport",
    "AiohttpTransport",
    "RequestEnvelope",
    "ResponseEnvelope",
    # Response Types
    "CollectionInfo",
    "CollectionType",
    "CursorExtra",
    "DatabaseInfo",
    "ServerRole",
    "ServerVersion",
    # Exceptions
    "ArangoDBError",
    "TransportError",
    "AuthenticationError",
    "ServerError",
    "CursorNotFoundError",
    "CollectionNotFoundError",
    "DeserializationError",
]


class ArangoDB:
    """
    Factory class for creating ArangoDB connections.

    Usage:
        # Blocking connection
        with ArangoDB.connect("http://localhost:8529", username="root", password="secret") as conn:
            rows = conn.db("shop").aql_str("FOR o IN orders RETURN o")

        # Asyncio connection over aiohttp, authenticating with JWT
        async with ArangoDB.connect_async(
            "http://localhost:8529", username="root", password="secret",
            auth_mode="jwt", engine="aiohttp",
        ) as conn:
            cursor = await conn.db("shop").submit("FOR o IN orders RETURN o", batch_size=100)
            async for order in cursor:
                ...
    """

    @staticmethod
    def connect(url: str = "http://localhost:8529", **kwargs: Any) -> ArangoConnection:
        """Create a blocking connection (not yet opened)."""
        return ArangoConnection(ArangoConfig(url=url, **kwargs))

    @staticmethod
    def connect_async(url: str = "http://localhost:8529", **kwargs: Any) -> AsyncArangoConnection:
        """Create an asyncio connection (not yet opened)."""
        return AsyncArangoConnection(ArangoConfig(url=url, **kwargs))

    @staticmethod
    def from_env(asynchronous: bool = False, **overrides: Any) -> BaseArangoConnection:
        """Create a connection configured from ``ARANGO*`` environment variables."""
        config = ArangoConfig.from_env(**overrides)
        if asynchronous:
            return AsyncArangoConnection(config)
        return ArangoConnection(config)
