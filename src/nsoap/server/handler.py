"""ASGI handler — translates ASGI scope/messages to nsoap types.

The only component that touches the raw ASGI scope. Builds a ``Request``
and a ``ResponseWriter``, runs the middleware chain, and guarantees the
connection is answered exactly once:

- the end of the chain without a response → 404
- an exception raised, or passed to ``next(error)`` → error response
- a response left open by a handler → closed
"""

import logging
from collections.abc import Callable
from typing import Any

from nsoap._internal.asgi import Receive, Scope, Send
from nsoap._internal.invoke import invoke
from nsoap.errors import HTTPError, NotFound
from nsoap.http.request import Request
from nsoap.http.writer import ResponseWriter
from nsoap.server.errors import handle_error

logger = logging.getLogger("nsoap.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    middleware: tuple[Callable[..., Any], ...],
    debug: bool,
    max_content_length: int | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline.

    A declared Content-Length above *max_content_length* is answered with
    413 before any middleware runs.
    """
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = ResponseWriter(send)

    length = request.content_length
    if max_content_length is not None and length is not None and length > max_content_length:
        await handle_error(
            HTTPError(status=413, detail="Request body too large"), request, response, debug
        )
        return

    async def run(index: int, error: BaseException | None = None) -> None:
        if error is not None:
            await handle_error(error, request, response, debug)
            return

        if index == len(middleware):
            # Chain exhausted
            if not response.headers_sent:
                await handle_error(NotFound(), request, response, debug)
            return

        async def next(err: BaseException | None = None) -> None:
            await run(index + 1, err)

        try:
            await invoke(middleware[index], request, response, next)
        except Exception as exc:
            await handle_error(exc, request, response, debug)

    await run(0)

    if not response.finished:
        if response.headers_sent:
            await response.end()
        else:
            logger.warning("%s %s: no response written", request.method, request.url)
            await handle_error(NotFound(), request, response, debug)
