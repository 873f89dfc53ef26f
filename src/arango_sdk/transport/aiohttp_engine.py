"""
aiohttp engine adapter for ArangoDB SDK.

An alternative non-blocking engine. The ``aiohttp.ClientSession`` is created
lazily on the first request so it binds to the running event loop.
"""

import asyncio
import logging

import aiohttp

from ..exceptions import TransportError
from ..protocol.envelope import RequestEnvelope, ResponseEnvelope
from .base import AsyncBaseTransport

logger = logging.getLogger(__name__)


class AiohttpTransport(AsyncBaseTransport):
    """Non-blocking transport on top of ``aiohttp.ClientSession``."""

    def __init__(
        self,
        timeout: float = 30.0,
        verify: bool = True,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize the aiohttp adapter.

        Args:
            timeout: Total request timeout in seconds
            verify: Verify TLS certificates
            session: Optional externally managed session; it is not closed by ``close()``
        """
        self.timeout = timeout
        self.verify = verify
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                connector=aiohttp.TCPConnector(ssl=self.verify),
            )
            self._owns_session = True
        return self._session

    async def send(self, request: RequestEnvelope) -> ResponseEnvelope:
        logger.debug(f"aiohttp {request.method} {request.url}")
        session = self._get_session()
        try:
            async with session.request(
                request.method,
                request.url,
                params=request.params or None,
                data=request.body,
                headers=request.headers,
            ) as response:
                body = await response.read()
                return ResponseEnvelope(
                    status_code=response.status,
                    body=body,
                    headers={k.lower(): v for k, v in response.headers.items()},
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Request failed: {e}") from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
