"""Mutable response handle bound to one ASGI connection.

Handlers that take over the response (a returned callable, or a handler
that sets ``context.handled``) write through this object directly; the
dispatcher uses the same object for default writes. Tracking
``headers_sent`` and ``finished`` here is what lets the pipeline keep the
one-write-per-request rule.

Usage::

    await response.status(201).json({"id": 42})

    await response.write_head(200, {"content-type": "text/plain"})
    await response.write("partial ")
    await response.end("done")
"""

import logging
from collections.abc import Mapping
from typing import Any

from nsoap._internal.asgi import Send
from nsoap.errors import ResponseStateError
from nsoap.http.response import TEXT_CONTENT_TYPE, Response
from nsoap.server.sender import send_chunk, send_head, send_response

logger = logging.getLogger("nsoap.server")


class ResponseWriter:
    """Per-request response handle.

    Buffered writes (``send``, ``json``, ``send_response``) finish the
    response in one go. Streamed writes open it with ``write_head`` (or
    implicitly on the first ``write``) and close it with ``end``.
    """

    __slots__ = ("_finished", "_headers", "_headers_sent", "_send", "_status")

    def __init__(self, send: Send) -> None:
        self._send = send
        self._status = 200
        self._headers: list[tuple[str, str]] = []
        self._headers_sent = False
        self._finished = False

    # -- State --

    @property
    def headers_sent(self) -> bool:
        """True once the status line and headers went out."""
        return self._headers_sent

    @property
    def finished(self) -> bool:
        """True once the final body message went out."""
        return self._finished

    @property
    def status_code(self) -> int:
        return self._status

    # -- Head --

    def status(self, code: int) -> "ResponseWriter":
        """Set the status for the next write. Chainable."""
        self._check_head_open()
        self._status = code
        return self

    def set_header(self, name: str, value: str) -> "ResponseWriter":
        """Add a header for the next write. Chainable."""
        self._check_head_open()
        self._headers.append((name, value))
        return self

    async def write_head(self, status: int, headers: Mapping[str, str] | None = None) -> None:
        """Open a chunked response with *status* and *headers*."""
        self._check_head_open()
        self._status = status
        if headers:
            self._headers.extend((str(k), str(v)) for k, v in headers.items())
        self._headers_sent = True
        await send_head(self._status, self._headers, self._send)

    # -- Buffered body --

    async def send(self, body: str | bytes = "") -> None:
        """Send a complete response with *body*.

        Text bodies default to ``text/html``, bytes to
        ``application/octet-stream``; an explicit content-type header wins.
        """
        default_type = TEXT_CONTENT_TYPE if isinstance(body, str) else "application/octet-stream"
        await self.send_response(Response(body=body, status=self._status, content_type=default_type))

    async def json(self, value: Any) -> None:
        """Send *value* serialized as a JSON response."""
        await self.send_response(Response.from_json(value, status=self._status))

    async def send_response(self, response: Response) -> None:
        """Send a prebuilt ``Response``, merged with headers set so far."""
        self._check_head_open()
        content_type = response.content_type
        extra: list[tuple[str, str]] = []
        for name, value in (*self._headers, *response.headers):
            if name.lower() == "content-type":
                content_type = value
            else:
                extra.append((name, value))
        self._status = response.status
        self._headers_sent = True
        self._finished = True
        await send_response(
            Response(
                body=response.body,
                status=response.status,
                content_type=content_type,
                headers=tuple(extra),
            ),
            self._send,
        )

    # -- Streamed body --

    async def write(self, chunk: str | bytes) -> None:
        """Write one body chunk, opening the stream first if needed."""
        if self._finished:
            raise ResponseStateError("Cannot write: response already finished")
        if not self._headers_sent:
            await self.write_head(self._status)
        if chunk:
            await send_chunk(chunk, self._send)

    async def end(self, chunk: str | bytes | None = None) -> None:
        """Finish the response, optionally with a last chunk.

        Without a prior ``write``/``write_head`` this is a plain buffered
        send of *chunk*.
        """
        if self._finished:
            raise ResponseStateError("Cannot end: response already finished")
        if not self._headers_sent:
            await self.send(chunk if chunk is not None else "")
            return
        self._finished = True
        await send_chunk(chunk or b"", self._send, more_body=False)

    # -- Internal --

    def _check_head_open(self) -> None:
        if self._headers_sent:
            logger.debug("Rejected head write: headers already sent (status %d)", self._status)
            raise ResponseStateError("Cannot modify status or headers: headers already sent")
