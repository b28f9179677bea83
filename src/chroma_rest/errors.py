"""Exception hierarchy for chroma_rest.

Every failure surfaced by the client is a subclass of :class:`ChromaError`,
so callers can catch one kind to decide whether to retry or to fix their
input.
"""

from typing import Any


class ChromaError(Exception):
    """Base class for all client errors."""

    retryable: bool = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(ChromaError):
    """Invalid client configuration or request arguments (no request was sent)."""


class ConnectivityError(ChromaError):
    """Transport-level failure: DNS, connect, TLS, timeout."""

    retryable = True


class AuthFailureError(ChromaError):
    """The server rejected the configured credentials."""


class NotFoundError(ChromaError):
    """The named collection or entry does not exist."""


class ConflictError(ChromaError):
    """A collection or entry with the same identity already exists."""


class BadRequestError(ChromaError):
    """The server rejected the request as malformed (invalid name, filter, ...)."""


class ServerError(ChromaError):
    """Remote failure (5xx)."""

    retryable = True


class ProtocolError(ChromaError):
    """The response did not have the expected shape."""


class EmbeddingError(ChromaError):
    """The embedding provider failed before any database call was made."""


# Error names reported in the server's JSON error body
_NOT_FOUND_NAMES = {"NotFoundError", "InvalidCollection", "InvalidCollectionException"}
_CONFLICT_NAMES = {"UniqueConstraintError", "DuplicateIDError"}


def error_from_response(status_code: int, body: Any, text: str = "") -> ChromaError:
    """Build the matching error for a non-2xx HTTP response.

    Args:
        status_code: HTTP status code
        body: Decoded JSON body, or None if it was not JSON
        text: Raw response text, used when the body has no message

    Returns:
        A ChromaError subclass instance
    """
    error_name = ""
    message = text
    if isinstance(body, dict):
        error_name = str(body.get("error") or "")
        message = str(body.get("message") or body.get("detail") or text)
    if error_name:
        message = f"{error_name}: {message}"
    message = f"{status_code}: {message}" if message else str(status_code)

    if status_code in (401, 403):
        return AuthFailureError(message, status_code)
    if status_code == 404 or error_name in _NOT_FOUND_NAMES:
        return NotFoundError(message, status_code)
    if status_code == 409 or error_name in _CONFLICT_NAMES:
        return ConflictError(message, status_code)
    if status_code >= 500:
        return ServerError(message, status_code)
    return BadRequestError(message, status_code)
