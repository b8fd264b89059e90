"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, response: ResponseWriter, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.

A middleware either writes the response through ``response`` or calls
``await next()`` to pass the request on. ``await next(error)`` skips the
remaining middleware and hands *error* to the host error pipeline,
which is how failures reach the client once a stream is already open.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from nsoap.http.request import Request
from nsoap.http.writer import ResponseWriter

# The rest of the chain; pass an exception to short-circuit to error handling
Next: TypeAlias = Callable[..., Awaitable[None]]


class Middleware(Protocol):
    """Protocol for nsoap host middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request, response, next):
            start = time.monotonic()
            await next()
            logger.info("%s took %.3fs", request.path, time.monotonic() - start)

        # Class middleware
        class RequireToken:
            async def __call__(self, request, response, next):
                if "authorization" not in request.headers:
                    await response.status(401).send("Unauthorized")
                    return
                await next()
    """

    async def __call__(self, request: Request, response: ResponseWriter, next: Next) -> None: ...
