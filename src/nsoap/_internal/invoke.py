"""Invoke helpers — call sync or async callables uniformly.

Resolvers, context factories, stream callbacks, and takeover handlers
can all be ``def`` or ``async def``. Any code that calls one of them
goes through this helper so the sync/async check lives in exactly one
place.

Usage::

    from nsoap._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync — returns immediately, no await needed
        def create_context(request, response, next):
            return {"is_context": True, "handled": False}

        # async — returns coroutine, awaited automatically
        async def create_context(request, response, next):
            user = await load_user(request)
            return AppContext(user=user)
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
