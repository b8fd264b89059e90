"""Per-invocation context.

Provides:
- ``InvocationContext``: the record handed to handlers that ask for it,
  carrying the framework handles and the ``handled`` flag.
- ``build_context``: default construction or a user factory.
- ``context_var`` / ``get_context``: the context of the invocation in
  progress, for handlers that did not take it as an argument.

A handler that sets ``context.handled = True`` takes responsibility for
the response; the dispatcher then writes nothing.

Thread safety:
    ``ContextVar`` is task-local under asyncio. Each request builds its own
    context, so nothing here is shared across requests.
"""

from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from nsoap._internal.invoke import invoke
from nsoap.http.request import Request
from nsoap.http.writer import ResponseWriter


@dataclass(slots=True)
class InvocationContext:
    """Mutable per-request context.

    ``is_context`` is the discriminant that tells the context apart from
    ordinary positional arguments; it is always ``True`` and cannot be set
    through the constructor. ``state`` is free-form per-request storage.
    """

    request: Request
    response: ResponseWriter
    next: Callable[..., Any]
    handled: bool = False
    state: dict[str, Any] = field(default_factory=dict)
    is_context: bool = field(default=True, init=False)


context_var: ContextVar[Any] = ContextVar("nsoap_context")
"""The context of the invocation in progress. Set by the adapter."""


def get_context() -> Any:
    """Return the context of the current invocation.

    Raises ``LookupError`` if called outside an invocation.
    """
    return context_var.get()


def is_context(value: Any) -> bool:
    """True only for objects carrying ``is_context = True``.

    Compared by identity, so a truthy attribute or a marker method never
    qualifies.
    """
    if isinstance(value, dict):
        return value.get("is_context") is True
    return getattr(value, "is_context", None) is True


def is_handled(context: Any) -> bool:
    """Read the ``handled`` flag from any context shape (object or dict)."""
    if isinstance(context, dict):
        return bool(context.get("handled", False))
    return bool(getattr(context, "handled", False))


async def build_context(
    request: Request,
    response: ResponseWriter,
    next: Callable[..., Any],
    factory: Callable[..., Any] | None = None,
) -> Any:
    """Create the context for one request.

    With a *factory*, its return value is used verbatim, so it can carry
    custom fields (services, the authenticated user). The factory may be
    sync or async and receives ``(request, response, next)``.
    """
    if factory is not None:
        return await invoke(factory, request, response, next)
    return InvocationContext(request=request, response=response, next=next)
