"""Resolution outcomes.

The adapter folds everything the resolver can produce — a value, a
callable, a routing failure, a raised exception — into exactly one of
these four shapes. The dispatcher matches on them; nothing else crosses
the boundary between the two.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from nsoap.errors import RoutingErrorKind


@dataclass(frozen=True, slots=True)
class Value:
    """The handler produced a plain value."""

    value: Any


@dataclass(frozen=True, slots=True)
class Takeover:
    """The handler returned a callable that writes the response itself.

    Called with ``(request, response)``.
    """

    handler: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class RoutingFailure:
    """The call expression did not resolve against the handler tree."""

    kind: RoutingErrorKind
    detail: str = ""


@dataclass(frozen=True, slots=True)
class Rejected:
    """The handler raised, or its awaitable failed."""

    error: BaseException


Outcome: TypeAlias = Value | Takeover | RoutingFailure | Rejected
