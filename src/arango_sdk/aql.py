"""
AQL query description.

``AqlQuery`` is the body of ``POST /_api/cursor``. It serialises to the
server's camelCase field names and leaves out everything that was not set,
so server defaults apply. Builder helpers return new instances::

    aql = (
        AqlQuery(query="FOR u IN users FILTER u.age > @age RETURN u")
        .bind_var("age", 21)
        .with_batch_size(100)
        .with_count()
    )
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _AqlModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AqlOptions(_AqlModel):
    """Per-query options (the ``options`` object of a cursor request)."""

    full_count: bool | None = None
    max_plans: int | None = None
    optimizer_rules: list[str] | None = None
    profile: bool | int | None = None
    fail_on_warning: bool | None = None
    stream: bool | None = None
    max_warning_count: int | None = None
    max_runtime: float | None = None
    satellite_sync_wait: float | None = None
    intermediate_commit_count: int | None = None
    intermediate_commit_size: int | None = None
    skip_inaccessible_collections: bool | None = None
    max_transaction_size: int | None = None


class AqlQuery(_AqlModel):
    """
    An AQL statement plus the cursor parameters it is submitted with.

    Attributes:
        query: The AQL text
        bind_vars: Values for ``@name`` and ``@@collection`` placeholders
        count: Ask the server for the total result size
        batch_size: Maximum items per batch
        cache: Use the query result cache
        memory_limit: Server-side memory cap in bytes
        ttl: Cursor idle lifetime in seconds
        options: Additional query options
    """

    query: str
    bind_vars: dict[str, Any] = Field(default_factory=dict)
    count: bool | None = None
    batch_size: int | None = Field(default=None, gt=0)
    cache: bool | None = None
    memory_limit: int | None = None
    ttl: float | None = None
    options: AqlOptions | None = None

    def bind_var(self, name: str, value: Any) -> Self:
        """Return a copy with one more bind variable."""
        return self.model_copy(update={"bind_vars": {**self.bind_vars, name: value}})

    def with_batch_size(self, batch_size: int) -> Self:
        """Return a copy with ``batch_size`` set."""
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")
        return self.model_copy(update={"batch_size": batch_size})

    def with_count(self, count: bool = True) -> Self:
        """Return a copy that asks for (or stops asking for) the total count."""
        return self.model_copy(update={"count": count})

    def with_options(self, **options: Any) -> Self:
        """Return a copy with query options merged in (snake_case names)."""
        current = self.options.model_dump(exclude_none=True) if self.options else {}
        return self.model_copy(update={"options": AqlOptions(**{**current, **options})})

    def to_body(self) -> dict[str, Any]:
        """Body of ``POST /_api/cursor``."""
        body = self.model_dump(by_alias=True, exclude_none=True)
        options = body.get("options")
        if options and "optimizerRules" in options:
            options["optimizer"] = {"rules": options.pop("optimizerRules")}
        return body


__all__ = ["AqlOptions", "AqlQuery"]
