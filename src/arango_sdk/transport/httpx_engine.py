"""
httpx engine adapters for ArangoDB SDK.

``HTTPXTransport`` wraps ``httpx.Client`` for the blocking discipline and
``AsyncHTTPXTransport`` wraps ``httpx.AsyncClient`` for asyncio. Both are built
with ``retries=0``: the SDK's only retry is the post-reauthentication one.
"""

import logging

import httpx

from ..exceptions import TransportError
from ..protocol.envelope import RequestEnvelope, ResponseEnvelope
from .base import AsyncBaseTransport, BaseTransport

logger = logging.getLogger(__name__)


def _to_envelope(response: httpx.Response) -> ResponseEnvelope:
    return ResponseEnvelope(
        status_code=response.status_code,
        body=response.content,
        headers={k.lower(): v for k, v in response.headers.items()},
    )


class HTTPXTransport(BaseTransport):
    """
    Blocking transport on top of ``httpx.Client``.

    Connection reuse is left to httpx's own pool.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the httpx client.

        Args:
            timeout: Request timeout in seconds
            verify: Verify TLS certificates
            transport: Optional custom httpx transport (e.g. ``httpx.MockTransport``)
        """
        self._client = httpx.Client(
            timeout=timeout,
            verify=verify,
            transport=transport or httpx.HTTPTransport(retries=0, verify=verify),
        )

    def send(self, request: RequestEnvelope) -> ResponseEnvelope:
        logger.debug(f"httpx {request.method} {request.url}")
        try:
            response = self._client.request(
                request.method,
                request.url,
                params=request.params or None,
                content=request.body,
                headers=request.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request failed: {e}") from e
        return _to_envelope(response)

    def close(self) -> None:
        self._client.close()


class AsyncHTTPXTransport(AsyncBaseTransport):
    """Non-blocking transport on top of ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the httpx async client.

        Args:
            timeout: Request timeout in seconds
            verify: Verify TLS certificates
            transport: Optional custom httpx async transport
        """
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=verify,
            transport=transport or httpx.AsyncHTTPTransport(retries=0, verify=verify),
        )

    async def send(self, request: RequestEnvelope) -> ResponseEnvelope:
        logger.debug(f"httpx async {request.method} {request.url}")
        try:
            response = await self._client.request(
                request.method,
                request.url,
                params=request.params or None,
                content=request.body,
                headers=request.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request failed: {e}") from e
        return _to_envelope(response)

    async def close(self) -> None:
        await self._client.aclose()
