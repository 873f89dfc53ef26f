"""
Type definitions for ArangoDB SDK responses.

Provides strongly-typed wrappers around server replies instead of raw dicts.
Payloads are validated with pydantic; a reply that does not fit its model is
reported as ``DeserializationError``.
"""

from enum import IntEnum, StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .exceptions import DeserializationError

M = TypeVar("M", bound=BaseModel)


class ArangoModel(BaseModel):
    """Base for reply models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def validate(model: type[M], data: Any) -> M:
    """Validate ``data`` against ``model``, mapping failures to ``DeserializationError``."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DeserializationError(f"Unexpected {model.__name__} payload: {e}") from e


class ServerRole(StrEnum):
    """Role reported by ``GET /_admin/server/role``."""

    SINGLE = "SINGLE"
    COORDINATOR = "COORDINATOR"
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    AGENT = "AGENT"
    UNDEFINED = "UNDEFINED"

    @property
    def is_cluster(self) -> bool:
        """Check if the server is part of a cluster."""
        return self is not ServerRole.SINGLE


class ServerVersion(ArangoModel):
    """
    Reply of ``GET /_api/version``.

    Attributes:
        server: Always ``arango`` for a genuine ArangoDB server
        version: Server version string
        license: ``community`` or ``enterprise``
    """

    server: str
    version: str
    license: str = "community"
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def major(self) -> int:
        """Major version number."""
        return int(self.version.split(".", 1)[0])


class DatabaseInfo(ArangoModel):
    """Reply of ``GET /_api/database/current``."""

    name: str
    id: str
    path: str | None = None
    is_system: bool = False
    replication_factor: int | str | None = None
    write_concern: int | None = None
    sharding: str | None = None


class CollectionType(IntEnum):
    """Collection kinds as numbered by the server."""

    DOCUMENT = 2
    EDGE = 3


class CollectionInfo(ArangoModel):
    """One entry of ``GET /_api/collection`` or a collection create/drop reply."""

    id: str
    name: str
    status: int | None = None
    type: CollectionType = CollectionType.DOCUMENT
    is_system: bool = False
    globally_unique_id: str | None = None

    @property
    def is_edge(self) -> bool:
        """Check if this is an edge collection."""
        return self.type is CollectionType.EDGE


class CursorExtra(ArangoModel):
    """``extra`` section of a cursor reply: statistics and warnings."""

    stats: dict[str, Any] = Field(default_factory=dict)
    warnings: list[dict[str, Any]] = Field(default_factory=list)
    profile: dict[str, Any] | None = None
    plan: dict[str, Any] | None = None

    @property
    def full_count(self) -> int | None:
        """Result size ignoring the last LIMIT, when ``fullCount`` was requested."""
        value = self.stats.get("fullCount")
        return int(value) if value is not None else None


class CursorPage(ArangoModel):
    """
    One batch of a cursor as sent by ``POST /_api/cursor`` or ``PUT /_api/cursor/{id}``.

    Attributes:
        id: Server cursor id; absent when the whole result fit into one batch
        result: Items of this batch, in server order
        has_more: Whether another batch can be fetched
        count: Total result size when the query asked for ``count``
        extra: Statistics and warnings
        cached: Whether the result came from the query cache
    """

    id: str | None = None
    result: list[Any] = Field(default_factory=list)
    has_more: bool = False
    count: int | None = None
    extra: CursorExtra = Field(default_factory=CursorExtra)
    cached: bool = False


__all__ = [
    "ArangoModel",
    "CollectionInfo",
    "CollectionType",
    "CursorExtra",
    "CursorPage",
    "DatabaseInfo",
    "ServerRole",
    "ServerVersion",
    "validate",
]
