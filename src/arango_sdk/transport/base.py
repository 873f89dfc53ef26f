"""
Base Transport Interface for ArangoDB SDK.

Defines the contract every HTTP engine adapter implements. A transport sends
exactly one request per call, never retries, and reports non-2xx replies as
ordinary ``ResponseEnvelope`` values. Only engine-level failures raise, and
always as ``TransportError``.
"""

from abc import ABC, abstractmethod
from typing import Any, Self

from ..protocol.envelope import RequestEnvelope, ResponseEnvelope


class BaseTransport(ABC):
    """Blocking transport: the calling thread waits for the reply."""

    @abstractmethod
    def send(self, request: RequestEnvelope) -> ResponseEnvelope:
        """
        Send a request and return the raw reply.

        Raises:
            TransportError: If the engine could not complete the exchange
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release engine resources."""
        ...

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class AsyncBaseTransport(ABC):
    """Non-blocking transport: the calling coroutine suspends until the reply."""

    @abstractmethod
    async def send(self, request: RequestEnvelope) -> ResponseEnvelope:
        """
        Send a request and return the raw reply.

        Raises:
            TransportError: If the engine could not complete the exchange
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release engine resources."""
        ...

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
