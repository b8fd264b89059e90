"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, response: ResponseWriter, next: Next) -> None

Built-in middleware:
    NsoapMiddleware -- Resolve the URL path as a function call on a handler tree
"""

from nsoap.middleware.nsoap import NsoapMiddleware
from nsoap.middleware.protocol import Middleware, Next

__all__ = [
    "Middleware",
    "Next",
    "NsoapMiddleware",
]
