"""The resolver boundary.

The resolver is the engine that parses a call expression such as
``namespace.binary(x,20)``, walks the handler tree, pulls named
arguments from the dictionaries, and calls the handler. nsoap does not
ship one; it only calls it, through this protocol::

    async def resolve(tree, expression, dictionaries, options):
        ...

The resolver returns a value, an awaitable, a callable (which takes
over the response), or a ``RoutingError``. It may also raise: a raised
``RoutingError`` is a routing failure, anything else is a rejection.
Dictionaries are consulted in the order given; the first one holding a
key wins.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias

from nsoap._internal.types import HandlerTree
from nsoap.normalize import NormalizedDict

# Receives one partial value in streaming mode; awaited before the next
PartialValueHook: TypeAlias = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class ResolveOptions:
    """Per-call options handed to the resolver.

    ``context_args`` holds the context when it should be passed to
    handlers (empty otherwise); ``prepend_context`` puts it before the
    expression's own arguments instead of after. ``on_partial_value`` is
    only set in streaming mode.
    """

    index: str = "index"
    context_args: tuple[Any, ...] = ()
    prepend_context: bool = False
    on_partial_value: PartialValueHook | None = None


class Resolver(Protocol):
    """Protocol for call-expression resolvers. Sync or async."""

    def __call__(
        self,
        tree: HandlerTree,
        expression: str,
        dictionaries: Sequence[NormalizedDict],
        options: ResolveOptions,
    ) -> Any: ...
