"""
ArangoDB SDK Connection Module.

Provides blocking and asyncio connection implementations.
"""

from .aio import AsyncArangoConnection
from .base import BaseArangoConnection, operation, quote_segment
from .sync import ArangoConnection

__all__ = [
    "ArangoConnection",
    "AsyncArangoConnection",
    "BaseArangoConnection",
    "operation",
    "quote_segment",
]
