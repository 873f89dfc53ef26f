"""
Asyncio Connection Implementation for ArangoDB SDK.

Every operation returns an awaitable; each network boundary is a suspension
point. Logic is shared with the blocking connection; only the driver differs.
"""

from collections.abc import Awaitable
from typing import Any, Self, TypeVar

from ..config import ArangoConfig, AuthMode
from ..exceptions import TransportError
from ..protocol.flow import Flow, run_async
from ..transport import AsyncBaseTransport, create_async_transport
from .base import BaseArangoConnection

T = TypeVar("T")


class AsyncArangoConnection(BaseArangoConnection):
    """
    Asyncio connection to ArangoDB.

    Usage:
        async with AsyncArangoConnection(url="http://localhost:8529", username="root",
                                         password="secret") as conn:
            cursor = await conn.db().aql_query_batch(AqlQuery(query="FOR u IN users RETURN u"))
            async for user in cursor:
                ...
    """

    is_async = True

    def __init__(
        self,
        config: ArangoConfig | None = None,
        transport: AsyncBaseTransport | None = None,
        **options: Any,
    ):
        """
        Initialize an asyncio connection.

        Args:
            config: Connection configuration
            transport: Engine to use instead of the one named by ``config.engine``
            **options: ``ArangoConfig`` fields, used when ``config`` is omitted
        """
        super().__init__(config, **options)
        self._transport = transport

    async def connect(self) -> Self:
        """Open the transport. Returns self for fluent API."""
        if self._connected:
            return self
        if self._transport is None:
            self._transport = create_async_transport(self._config)
        self._connected = True
        return self

    async def close(self) -> None:
        """Close the transport."""
        if self._transport is not None:
            await self._transport.close()
            self._transport = None
        self._connected = False

    async def __aenter__(self) -> Self:
        return await self.connect()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def run(self, flow: Flow[T]) -> Awaitable[T]:
        return self._run(flow)

    async def _run(self, flow: Flow[T]) -> T:
        if not self._connected or self._transport is None:
            flow.close()
            raise TransportError("Not connected. Call connect() first.")
        return await run_async(flow, self._transport.send)

    # Establishment helpers

    @classmethod
    async def _establish(cls, config: ArangoConfig, login: bool = False) -> Self:
        conn = await cls(config).connect()
        try:
            if login:
                await conn.login()
            await conn.negotiate()
        except BaseException:
            await conn.close()
            raise
        return conn

    @classmethod
    async def establish_without_auth(cls, url: str = "http://localhost:8529", **options: Any) -> Self:
        """Connect without credentials and check that the peer is ArangoDB."""
        return await cls._establish(ArangoConfig(url=url, auth_mode=AuthMode.NONE, **options))

    @classmethod
    async def establish_basic_auth(cls, url: str, username: str, password: str, **options: Any) -> Self:
        """Connect with Basic auth and check that the peer is ArangoDB."""
        config = ArangoConfig(url=url, username=username, password=password, auth_mode=AuthMode.BASIC, **options)
        return await cls._establish(config)

    @classmethod
    async def establish_jwt(cls, url: str, username: str, password: str, **options: Any) -> Self:
        """Connect, log in for a JWT and check that the peer is ArangoDB."""
        config = ArangoConfig(url=url, username=username, password=password, auth_mode=AuthMode.JWT, **options)
        return await cls._establish(config, login=True)
