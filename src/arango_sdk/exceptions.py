"""
ArangoDB SDK Exceptions.

Custom exception hierarchy for the SDK.
"""

from typing import Any

ERROR_CURSOR_NOT_FOUND = 1600


class ArangoDBError(Exception):
    """Base exception for all ArangoDB SDK errors."""

    def __init__(self, message: str, code: int | None = None):
        self.message = message
        self.code = code
        super().__init__(message)


class TransportError(ArangoDBError):
    """Raised when the HTTP engine fails to deliver a request (DNS, TLS, timeout, reset)."""

    pass


class AuthenticationError(ArangoDBError):
    """Raised when login fails or the single re-authentication retry is used up."""

    pass


class DeserializationError(ArangoDBError):
    """Raised when a reply does not have the shape the endpoint promises."""

    def __init__(self, message: str, body: str | None = None, code: int | None = None):
        self.body = body
        super().__init__(message, code)


class ServerError(ArangoDBError):
    """Raised when the server reports an error in the reply envelope."""

    def __init__(
        self,
        message: str,
        error_num: int = 0,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.error_num = error_num
        self.details = details or {}
        super().__init__(message, code)

    def __str__(self) -> str:
        return f"[HTTP {self.code}][ERR {self.error_num}] {self.message}"

    @classmethod
    def from_envelope(cls, body: dict[str, Any], status_code: int) -> "ServerError":
        """Build the most specific error for an ``error: true`` envelope."""
        error_num = body.get("errorNum")
        if isinstance(error_num, bool) or not isinstance(error_num, int):
            error_num = 0
        code = body.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            code = status_code
        message = body.get("errorMessage") or body.get("message") or "unknown server error"
        error_cls = CursorNotFoundError if error_num == ERROR_CURSOR_NOT_FOUND else cls
        return error_cls(message, error_num=error_num, code=code, details=body)


class CursorNotFoundError(ServerError):
    """Raised when the server no longer knows a cursor id.

    Cursors expire server-side; this condition is terminal and is never retried.
    """

    pass


class CollectionNotFoundError(ArangoDBError):
    """Raised when no accessible collection has the requested name."""

    pass
