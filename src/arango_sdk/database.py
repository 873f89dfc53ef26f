"""
Database facade.

AQL queries and collection administration are executed at database level.
Every method is written once; on a blocking connection it returns its
result, on an asyncio connection an awaitable of it.
"""

import logging
from typing import TYPE_CHECKING, Any

from .aql import AqlQuery
from .connection.base import operation, quote_segment
from .cursor import Cursor, submit_flow
from .exceptions import ArangoDBError, CollectionNotFoundError, DeserializationError
from .protocol.flow import Flow
from .types import CollectionInfo, CollectionType, DatabaseInfo, validate

if TYPE_CHECKING:
    from .connection.base import BaseArangoConnection

logger = logging.getLogger(__name__)


class Database:
    """A named database on the server; holds no state besides its name."""

    def __init__(self, connection: "BaseArangoConnection", name: str):
        self._connection = connection
        self.name = name

    def __repr__(self) -> str:
        return f"<Database {self.name!r}>"

    @property
    def connection(self) -> "BaseArangoConnection":
        return self._connection

    def _call(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Flow[dict[str, Any]]:
        request = self._connection.build_request(method, path, params=params, body=body, database=self.name)
        return (yield from self._connection.call(request))

    # Database level

    @operation
    def info(self) -> Flow[DatabaseInfo]:
        """Information about this database."""
        data = yield from self._call("GET", "_api/database/current")
        return validate(DatabaseInfo, data.get("result"))

    # Collections

    def _collections(self, exclude_system: bool) -> Flow[list[CollectionInfo]]:
        data = yield from self._call("GET", "_api/collection", params={"excludeSystem": exclude_system})
        result = data.get("result")
        if not isinstance(result, list):
            raise DeserializationError(f"Expected a list of collections, got {type(result).__name__}")
        return [validate(CollectionInfo, item) for item in result]

    @operation
    def accessible_collections(self, exclude_system: bool = False) -> Flow[list[CollectionInfo]]:
        """All collections of this database."""
        logger.debug(f"Retrieving collections of {self.name!r}")
        return (yield from self._collections(exclude_system))

    @operation
    def collection(self, name: str) -> Flow[CollectionInfo]:
        """
        Look up one collection by name.

        Raises:
            CollectionNotFoundError: If no accessible collection is called ``name``
        """
        for info in (yield from self._collections(False)):
            if info.name == name:
                return info
        raise CollectionNotFoundError(f"Collection {name} not found", code=404)

    @operation
    def create_collection(self, name: str, edge: bool = False, **properties: Any) -> Flow[CollectionInfo]:
        """Create a document (or edge) collection."""
        body = {
            "name": name,
            "type": int(CollectionType.EDGE if edge else CollectionType.DOCUMENT),
            **properties,
        }
        data = yield from self._call("POST", "_api/collection", body=body)
        logger.info(f"Created collection {name!r} in {self.name!r}")
        return validate(CollectionInfo, data)

    @operation
    def drop_collection(self, name: str, is_system: bool = False) -> Flow[str]:
        """Drop a collection; returns the id of the dropped collection."""
        data = yield from self._call(
            "DELETE",
            f"_api/collection/{quote_segment(name)}",
            params={"isSystem": is_system or None},
        )
        logger.info(f"Dropped collection {name!r} from {self.name!r}")
        return str(data.get("id", ""))

    # AQL

    @operation
    def aql_query_batch(self, query: AqlQuery) -> Flow[Cursor]:
        """
        Submit a query and return a cursor over its result.

        Cursors carry statistics and warnings and let results be consumed
        batch by batch instead of all at once.
        """
        return (yield from submit_flow(self._connection, query, self.name))

    @operation
    def submit(
        self,
        aql: str,
        bind_vars: dict[str, Any] | None = None,
        batch_size: int | None = None,
        count: bool | None = None,
        **options: Any,
    ) -> Flow[Cursor]:
        """Submit AQL text with bind variables; ``options`` are ``AqlOptions`` fields."""
        query = AqlQuery(query=aql, bind_vars=bind_vars or {}, batch_size=batch_size, count=count)
        if options:
            query = query.with_options(**options)
        return (yield from submit_flow(self._connection, query, self.name))

    @operation
    def aql_next_batch(self, cursor: Cursor) -> Flow[bool]:
        """Fetch the next batch of ``cursor``."""
        return (yield from cursor.advance_flow())

    def _collect(self, query: AqlQuery) -> Flow[list[Any]]:
        cursor = yield from submit_flow(self._connection, query, self.name)
        try:
            return (yield from cursor.fetch_all_flow())
        except ArangoDBError:
            # Release the server cursor before reporting the failed batch
            try:
                yield from cursor.dispose_flow()
            except ArangoDBError as e:
                logger.warning(f"Could not dispose cursor {cursor.id} after failed fetch: {e}")
            raise

    @operation
    def aql_query(self, query: AqlQuery) -> Flow[list[Any]]:
        """
        Run a query and collect every result item.

        Avoid this when the result is too large for client memory, and avoid
        small batch sizes, which multiply the number of requests. If a later
        batch fails the server cursor is disposed before the error is raised.
        """
        return (yield from self._collect(query))

    @operation
    def aql_str(self, query: str) -> Flow[list[Any]]:
        """Like ``aql_query`` for a bare query string."""
        return (yield from self._collect(AqlQuery(query=query)))

    @operation
    def aql_bind_vars(self, query: str, bind_vars: dict[str, Any]) -> Flow[list[Any]]:
        """Like ``aql_query`` for a query string plus bind variables."""
        return (yield from self._collect(AqlQuery(query=query, bind_vars=bind_vars)))


__all__ = ["Database"]
