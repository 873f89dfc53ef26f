"""
ArangoDB HTTP envelope implementation.

Every request the SDK sends is described by a ``RequestEnvelope`` and every
reply by a ``ResponseEnvelope``. Neither knows anything about the HTTP engine
that carries it, so the same envelopes flow through httpx and aiohttp, sync
and async alike.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from ..exceptions import DeserializationError, ServerError


class ArangoJSONEncoder(json.JSONEncoder):
    """
    Custom JSON encoder for request bodies.

    Handles serialization of Python types that are not natively JSON serializable:
    - datetime → ISO 8601 string
    - date → ISO 8601 string
    - time → ISO 8601 string
    - Decimal → float
    - UUID → string
    """

    def default(self, obj: Any) -> Any:
        """Encode non-standard types to JSON-serializable values."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, time):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, UUID):
            return str(obj)
        return super().default(obj)


def dumps(data: Any) -> bytes:
    """Encode a structured payload as a JSON request body."""
    return json.dumps(data, cls=ArangoJSONEncoder).encode("utf-8")


@dataclass(frozen=True)
class RequestEnvelope:
    """
    A fully addressed HTTP request.

    Attributes:
        method: HTTP method (GET, POST, PUT, DELETE, ...)
        url: Absolute URL including the database prefix
        params: Query string parameters
        body: Encoded JSON body, if any
        headers: Request headers, including ``Authorization`` when credentials exist
        expected: Status codes that count as success for this endpoint
    """

    method: str
    url: str
    params: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)
    expected: frozenset[int] = frozenset({200, 201, 202, 204})

    def with_header(self, name: str, value: str | None) -> "RequestEnvelope":
        """Return a copy with ``name`` set to ``value`` (or removed when None)."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        if value is not None:
            headers[name] = value
        return replace(self, headers=headers)

    def __repr__(self) -> str:
        # Headers omitted: they carry the Authorization value.
        return f"RequestEnvelope({self.method} {self.url} params={self.params!r})"


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    A raw HTTP reply as handed back by a transport engine.

    Attributes:
        status_code: HTTP status code
        body: Raw response body
        headers: Response headers (lower-cased keys)
    """

    status_code: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON, raising ``DeserializationError`` on failure."""
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise DeserializationError(
                f"Reply is not valid JSON: {e}",
                body=self.text[:500],
                code=self.status_code,
            ) from e


def parse_envelope(
    response: ResponseEnvelope,
    expected: frozenset[int] | None = None,
) -> dict[str, Any]:
    """
    Unwrap the common ``{error, errorNum, code, ...payload}`` reply shape.

    Args:
        response: The reply to interpret
        expected: Status codes that count as success; any 2xx when omitted

    Returns:
        The reply body as a dict (empty for bodiless 2xx replies)

    Raises:
        ServerError: If the envelope reports ``error: true``, or the status is
            not 2xx and the body carries no error flag
        DeserializationError: If the body is not a JSON object, or its
            ``error``, ``errorNum`` or ``code`` fields have the wrong type
    """
    ok = response.status_code in expected if expected else response.is_success

    if not response.body.strip():
        if ok:
            return {}
        raise ServerError(
            f"HTTP {response.status_code} with empty body",
            code=response.status_code,
        )

    data = response.json()
    if not isinstance(data, dict):
        raise DeserializationError(
            f"Expected a JSON object, got {type(data).__name__}",
            body=response.text[:500],
            code=response.status_code,
        )

    error = data.get("error", False)
    if not isinstance(error, bool):
        raise DeserializationError(
            f"Envelope field 'error' must be a boolean, got {error!r}",
            body=response.text[:500],
            code=response.status_code,
        )

    for field in ("errorNum", "code") if error or not ok else ():
        value = data.get(field)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise DeserializationError(
                f"Envelope field {field!r} must be an integer, got {value!r}",
                body=response.text[:500],
                code=response.status_code,
            )

    if error:
        raise ServerError.from_envelope(data, response.status_code)

    if not ok:
        raise ServerError(
            data.get("errorMessage") or f"HTTP {response.status_code}",
            error_num=data.get("errorNum") or 0,
            code=response.status_code,
            details=data,
        )

    return data
