"""
Connection configuration dataclass.

Provides an immutable configuration container consumed by connections.
The SDK reads it, never writes it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

DEFAULT_URL = "http://localhost:8529"


class AuthMode(StrEnum):
    """How a connection authenticates its requests."""

    NONE = "none"
    BASIC = "basic"
    JWT = "jwt"


Engine = Literal["httpx", "aiohttp"]


@dataclass(frozen=True)
class ArangoConfig:
    """
    Immutable configuration for an ArangoDB connection.

    Attributes:
        url: Server URL, or several coordinator URLs used round-robin.
        database: Database that requests are scoped to.
        username: Username for Basic or JWT authentication.
        password: Password for Basic or JWT authentication.
        auth_mode: ``none``, ``basic`` or ``jwt``; defaults to ``basic`` when a
            username is given, ``none`` otherwise.
        engine: HTTP engine; ``httpx`` (sync and async) or ``aiohttp`` (async only).
        batch_size: Default cursor batch size when a query does not set one.
        timeout: Engine request timeout in seconds.
        verify_ssl: Verify TLS certificates.
    """

    url: str | tuple[str, ...] = DEFAULT_URL
    database: str = "_system"
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    auth_mode: AuthMode | None = None
    engine: Engine = "httpx"
    batch_size: int | None = None
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        urls = (self.url,) if isinstance(self.url, str) else tuple(self.url)
        if not urls:
            raise ValueError("At least one server URL is required.")
        for url in urls:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"Invalid URL '{url}'. Must start with http:// or https://.")
        object.__setattr__(self, "url", urls[0] if len(urls) == 1 else urls)

        if self.auth_mode is None:
            object.__setattr__(self, "auth_mode", AuthMode.BASIC if self.username else AuthMode.NONE)
        else:
            object.__setattr__(self, "auth_mode", AuthMode(str(self.auth_mode).lower()))
        if self.engine not in ("httpx", "aiohttp"):
            raise ValueError(f"Invalid engine '{self.engine}'. Must be 'httpx' or 'aiohttp'.")
        if self.auth_mode is not AuthMode.NONE and not self.username:
            raise ValueError(f"auth_mode '{self.auth_mode}' requires a username.")
        if self.batch_size is not None and self.batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {self.batch_size}")
        if not self.database:
            raise ValueError("database must not be empty.")

    @property
    def urls(self) -> tuple[str, ...]:
        """All configured base URLs, without trailing slashes."""
        urls = (self.url,) if isinstance(self.url, str) else self.url
        return tuple(u.rstrip("/") for u in urls)

    @classmethod
    def from_env(cls, **overrides: object) -> ArangoConfig:
        """
        Build a configuration from environment variables.

        Reads ``ARANGODB_HOST`` (comma-separated, ``http://`` is added when no
        scheme is given), ``ARANGO_DATABASE``, ``ARANGO_USER``,
        ``ARANGO_PASSWORD``, ``ARANGO_AUTH_MODE``, ``ARANGO_ENGINE`` and
        ``ARANGO_BATCH_SIZE``. Keyword arguments take precedence.
        """
        values: dict[str, object] = {}

        host = os.getenv("ARANGODB_HOST")
        if host:
            hosts = tuple(
                h if h.startswith(("http://", "https://")) else f"http://{h}"
                for h in (part.strip() for part in host.split(","))
                if h
            )
            values["url"] = hosts[0] if len(hosts) == 1 else hosts

        env_map = {
            "ARANGO_DATABASE": "database",
            "ARANGO_USER": "username",
            "ARANGO_PASSWORD": "password",
            "ARANGO_AUTH_MODE": "auth_mode",
            "ARANGO_ENGINE": "engine",
        }
        for env_name, attr in env_map.items():
            value = os.getenv(env_name)
            if value:
                values[attr] = value

        batch_size = os.getenv("ARANGO_BATCH_SIZE")
        if batch_size:
            values["batch_size"] = int(batch_size)

        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


__all__ = ["ArangoConfig", "AuthMode", "Engine", "DEFAULT_URL"]
