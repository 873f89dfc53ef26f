"""
ArangoDB SDK Transport Module.

HTTP engine adapters behind one blocking and one non-blocking contract. The
engine is picked once, from ``ArangoConfig.engine``, when a connection opens.
"""

from ..config import ArangoConfig
from .aiohttp_engine import AiohttpTransport
from .base import AsyncBaseTransport, BaseTransport
from .httpx_engine import AsyncHTTPXTransport, HTTPXTransport


def create_transport(config: ArangoConfig) -> BaseTransport:
    """Create the blocking transport named by ``config.engine``."""
    if config.engine == "httpx":
        return HTTPXTransport(timeout=config.timeout, verify=config.verify_ssl)
    raise ValueError(f"Engine '{config.engine}' has no blocking transport. Use 'httpx'.")


def create_async_transport(config: ArangoConfig) -> AsyncBaseTransport:
    """Create the non-blocking transport named by ``config.engine``."""
    if config.engine == "aiohttp":
        return AiohttpTransport(timeout=config.timeout, verify=config.verify_ssl)
    return AsyncHTTPXTransport(timeout=config.timeout, verify=config.verify_ssl)


__all__ = [
    "AiohttpTransport",
    "AsyncBaseTransport",
    "AsyncHTTPXTransport",
    "BaseTransport",
    "HTTPXTransport",
    "create_async_transport",
    "create_transport",
]
