"""nsoap exception hierarchy.

Shared across the normalizer, adapter, dispatcher, response writer and
host pipeline so every module raises and catches the same types.
"""

from dataclasses import dataclass
from enum import Enum


class NsoapError(Exception):
    """Base for all nsoap-specific errors."""


class ConfigurationError(NsoapError):
    """Raised when bridge configuration is invalid.

    Typically caught when ``NsoapMiddleware`` is constructed.
    """


class ResponseStateError(NsoapError):
    """Raised on a write the response can no longer accept.

    A second final write, or a head written after headers were flushed.
    """


class NormalizationError(NsoapError, ValueError):
    """A request value is neither a boolean literal, an identifier, nor JSON.

    Raised lazily, only for the key being looked up, so the other keys
    of the same dictionary stay usable.
    """

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Cannot parse value of {key!r}: {value!r}")


class RoutingErrorKind(Enum):
    """Classification of a failure to resolve a call expression."""

    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"


class RoutingError(NsoapError):
    """The resolver could not map the call expression onto the handler tree.

    Resolvers may either return or raise an instance; both are treated
    as a routing failure, distinct from a handler's own runtime error.
    """

    def __init__(self, kind: RoutingErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.value)


@dataclass(frozen=True, slots=True)
class HTTPError(NsoapError):
    """An error that maps directly to an HTTP status code.

    Raised by host middleware. The ASGI handler catches these and
    writes a response with the matching status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no middleware produced a response for the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
