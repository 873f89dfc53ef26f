"""
AQL cursor engine.

A query submitted with ``POST /_api/cursor`` returns its first batch and,
when the result is larger than the batch size, a cursor id. Further batches
are pulled with ``PUT /_api/cursor/{id}``; an unfinished cursor is released
with ``DELETE /_api/cursor/{id}``. Once a reply says ``hasMore: false`` the
server has already released the cursor.

``Cursor`` hides the batches: iterating it (``for`` on a blocking connection,
``async for`` on an asyncio one) yields every item in server order and
fetches the next batch only when the current one runs out.
"""

import logging
from collections import deque
from collections.abc import AsyncIterator, Iterator
from typing import TYPE_CHECKING, Any, Self

from .aql import AqlQuery
from .connection.base import operation, quote_segment
from .exceptions import CursorNotFoundError, DeserializationError
from .protocol.flow import Flow
from .types import CursorExtra, CursorPage, validate

if TYPE_CHECKING:
    from .connection.base import BaseArangoConnection

logger = logging.getLogger(__name__)

CURSOR_PATH = "_api/cursor"


class Cursor:
    """
    Client side of a server cursor.

    A cursor is single-owner: it must not be advanced from two tasks or
    threads at once. Iteration is forward-only and cannot be restarted.

    Attributes:
        id: Server cursor id (``None`` when the result fit into one batch)
        has_more: Whether the server holds further batches
        count: Total result size, set once at creation when ``count`` was requested
        extra: Statistics and warnings from the latest reply
        cached: Whether the result came from the query cache
    """

    def __init__(
        self,
        connection: "BaseArangoConnection",
        database: str,
        page: CursorPage,
        query: AqlQuery | None = None,
    ):
        if page.has_more and not page.id:
            raise DeserializationError("Cursor reply has hasMore=true but no cursor id")
        self._connection = connection
        self.database = database
        self.query = query
        self.id = page.id
        self.has_more = page.has_more
        self.count = page.count
        self.extra: CursorExtra = page.extra
        self.cached = page.cached
        self._batch: deque[Any] = deque(page.result)
        self._disposed = False
        self._fetches = 0

    def __repr__(self) -> str:
        return f"<Cursor id={self.id!r} has_more={self.has_more} buffered={len(self._batch)}>"

    @property
    def connection(self) -> "BaseArangoConnection":
        return self._connection

    @property
    def batch(self) -> list[Any]:
        """Items of the current batch that have not been consumed yet."""
        return list(self._batch)

    @property
    def exhausted(self) -> bool:
        """Check if no items remain, locally or on the server."""
        return not self._batch and not self.has_more

    @property
    def disposed(self) -> bool:
        """Check if the cursor was explicitly released."""
        return self._disposed

    @property
    def fetches(self) -> int:
        """Number of next-batch requests issued so far."""
        return self._fetches

    @property
    def warnings(self) -> list[dict[str, Any]]:
        return self.extra.warnings

    @property
    def statistics(self) -> dict[str, Any]:
        return self.extra.stats

    def _path(self) -> str:
        return f"{CURSOR_PATH}/{quote_segment(str(self.id))}"

    # Flows

    def advance_flow(self) -> Flow[bool]:
        """
        Fetch the next batch if the server has one.

        Returns:
            True if a batch was fetched, False (without any request) otherwise

        Raises:
            CursorNotFoundError: If the server expired the cursor; terminal
        """
        if not self.has_more or self._disposed:
            return False

        request = self._connection.build_request("PUT", self._path(), database=self.database)
        try:
            data = yield from self._connection.call(request)
        except CursorNotFoundError:
            self.has_more = False
            self._disposed = True
            logger.debug(f"Cursor {self.id} expired on the server")
            raise

        page = validate(CursorPage, data)
        self._fetches += 1
        self._batch = deque(page.result)
        self.has_more = page.has_more
        if "extra" in data:
            self.extra = page.extra
        logger.debug(f"Cursor {self.id} batch {self._fetches}: {len(self._batch)} items, has_more={self.has_more}")
        return True

    def dispose_flow(self) -> Flow[bool]:
        """
        Release the server cursor.

        Returns:
            True if a DELETE was sent, False if there was nothing to release
        """
        if not self.has_more or self._disposed or self.id is None:
            self._disposed = True
            return False

        request = self._connection.build_request(
            "DELETE", self._path(), database=self.database, expected=frozenset({200, 202, 204})
        )
        try:
            yield from self._connection.call(request)
        except CursorNotFoundError:
            logger.debug(f"Cursor {self.id} was already gone on the server")
        self.has_more = False
        self._disposed = True
        logger.debug(f"Disposed cursor {self.id}")
        return True

    def fetch_all_flow(self) -> Flow[list[Any]]:
        """Drain every remaining item."""
        items = list(self._batch)
        self._batch.clear()
        while (yield from self.advance_flow()):
            items.extend(self._batch)
            self._batch.clear()
        return items

    # Operations

    @operation
    def advance(self) -> Flow[bool]:
        """Fetch the next batch; idempotent once the cursor is exhausted."""
        return (yield from self.advance_flow())

    @operation
    def dispose(self) -> Flow[bool]:
        """Release the server cursor; a no-op if already exhausted or disposed."""
        return (yield from self.dispose_flow())

    @operation
    def fetch_all(self) -> Flow[list[Any]]:
        """All remaining items as a list."""
        return (yield from self.fetch_all_flow())

    # Blocking iteration

    def _require(self, is_async: bool) -> None:
        if self._connection.is_async is not is_async:
            kind = "async for" if self._connection.is_async else "for"
            raise TypeError(f"This cursor belongs to a {type(self._connection).__name__}; use '{kind}'")

    def __iter__(self) -> Iterator[Any]:
        self._require(False)
        return self

    def __next__(self) -> Any:
        while not self._batch:
            if not self.has_more:
                raise StopIteration
            self.advance()
        return self._batch.popleft()

    def __enter__(self) -> Self:
        self._require(False)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.dispose()

    # Asyncio iteration

    def __aiter__(self) -> AsyncIterator[Any]:
        self._require(True)
        return self

    async def __anext__(self) -> Any:
        while not self._batch:
            if not self.has_more:
                raise StopAsyncIteration
            await self.advance()
        return self._batch.popleft()

    async def __aenter__(self) -> Self:
        self._require(True)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.dispose()


def submit_flow(
    connection: "BaseArangoConnection",
    query: AqlQuery,
    database: str | None = None,
) -> Flow[Cursor]:
    """
    Submit an AQL query and wrap the first batch in a ``Cursor``.

    The connection's default batch size applies when the query sets none.
    """
    database = database or connection.database_name
    if query.batch_size is None and connection.config.batch_size:
        query = query.with_batch_size(connection.config.batch_size)

    logger.debug(f"Submitting AQL to {database!r}: {query.query}")
    request = connection.build_request(
        "POST", CURSOR_PATH, body=query.to_body(), database=database, expected=frozenset({200, 201})
    )
    data = yield from connection.call(request)
    page = validate(CursorPage, data)
    cursor = Cursor(connection, database, page, query)
    logger.debug(f"Cursor {cursor.id}: {len(page.result)} items, has_more={cursor.has_more}")
    return cursor


__all__ = ["Cursor", "submit_flow"]
