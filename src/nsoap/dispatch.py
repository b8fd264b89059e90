"""Response dispatch — one outcome in, at most one response out.

``dispatch`` is a single ``match`` over the outcome, under a mode fixed
before the resolver ran:

=====================  ==========================  ===========================
Outcome                Buffered                    Streaming
=====================  ==========================  ===========================
Takeover(fn)           fn(request, response)       fn(request, response)
RoutingFailure         404 / 500                   404 / 500, or next(error)
                                                   once headers are out
Value, handled         nothing (next() if unsent)  nothing (next() if unsent)
Value                  200 text or JSON            terminal chunk
Rejected               400 with the message        next(error)
=====================  ==========================  ===========================

``StreamWriter`` is the partial-value hook used in streaming mode: the
first value is the head, every later value a chunk.
"""

import json as json_module
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

import anyio

from nsoap._internal.invoke import invoke
from nsoap.config import NsoapConfig
from nsoap.context import is_handled
from nsoap.errors import RoutingError, RoutingErrorKind
from nsoap.http.request import Request
from nsoap.http.writer import ResponseWriter
from nsoap.outcome import Outcome, Rejected, RoutingFailure, Takeover, Value

logger = logging.getLogger("nsoap.bridge")

NOT_FOUND_BODY = "Not found."
SERVER_ERROR_BODY = "Server error."

_ROUTING_STATUS = {
    RoutingErrorKind.NOT_FOUND: (404, NOT_FOUND_BODY),
    RoutingErrorKind.SERVER_ERROR: (500, SERVER_ERROR_BODY),
}


class DispatchMode(Enum):
    """How the response gets written for one request."""

    BUFFERED = "buffered"
    STREAMING = "streaming"
    DELEGATED = "delegated"  # entered when a returned callable takes over


def resolve_mode(config: NsoapConfig) -> DispatchMode:
    """Pick the mode from configuration, before the resolver runs."""
    return DispatchMode.STREAMING if config.stream_response else DispatchMode.BUFFERED


def encode_chunk(value: Any) -> str | bytes:
    """Text and bytes go out verbatim; anything else as strict JSON."""
    if isinstance(value, (str, bytes)):
        return value
    if value is None:
        return ""
    return json_module.dumps(value, allow_nan=False)


# -- Streaming --


async def write_stream_head(response: ResponseWriter, value: Any) -> None:
    """Default head writer: ``{"status": 200, "headers": {...}}``."""
    if not isinstance(value, Mapping):
        msg = f"First streamed value must be a head mapping, got {type(value).__name__}"
        raise TypeError(msg)
    await response.write_head(int(value.get("status", 200)), value.get("headers") or {})


async def write_stream_chunk(response: ResponseWriter, value: Any) -> None:
    """Default chunk writer."""
    await response.write(encode_chunk(value))


class StreamWriter:
    """Partial-value hook for streaming mode.

    Two phases, in order: the first value goes to the head writer, every
    later one to the chunk writer. Values are handled one at a time; a
    second emission waits until the first is written.
    """

    __slots__ = ("_head_written", "_lock", "_on_chunk", "_on_head", "response")

    def __init__(
        self,
        response: ResponseWriter,
        *,
        on_head: Callable[..., Any] | None = None,
        on_chunk: Callable[..., Any] | None = None,
    ) -> None:
        self.response = response
        self._on_head = on_head or write_stream_head
        self._on_chunk = on_chunk or write_stream_chunk
        self._head_written = False
        self._lock = anyio.Lock()

    @classmethod
    def from_config(cls, response: ResponseWriter, config: NsoapConfig) -> "StreamWriter":
        return cls(response, on_head=config.stream_headers, on_chunk=config.stream_chunk)

    @property
    def head_written(self) -> bool:
        return self._head_written

    async def __call__(self, value: Any) -> None:
        async with self._lock:
            if not self._head_written:
                await invoke(self._on_head, self.response, value)
                self._head_written = True
            else:
                await invoke(self._on_chunk, self.response, value)


# -- Dispatch --


def effective_mode(mode: DispatchMode, outcome: Outcome) -> DispatchMode:
    """The configured mode, or ``DELEGATED`` once a callable takes over."""
    if isinstance(outcome, Takeover):
        return DispatchMode.DELEGATED
    return mode


async def dispatch(
    outcome: Outcome,
    *,
    context: Any,
    request: Request,
    response: ResponseWriter,
    next: Callable[..., Any],
    mode: DispatchMode,
    config: NsoapConfig,
) -> DispatchMode:
    """Finalize the response for one outcome and return the mode used.

    Writes at most once. Errors that can no longer become a status line
    (the stream is already open) go to ``next(error)``.
    """
    mode = effective_mode(mode, outcome)
    streaming = mode is DispatchMode.STREAMING

    match outcome:
        case Takeover(handler=handler):
            logger.debug("%s %s: response delegated to %r", request.method, request.path, handler)
            await invoke(handler, request, response)

        case RoutingFailure(kind=kind, detail=detail):
            if kind is RoutingErrorKind.SERVER_ERROR:
                logger.warning("%s %s: resolver failed: %s", request.method, request.path, detail)
            if streaming and response.headers_sent:
                await next(RoutingError(kind, detail))
                return mode
            status, body = _ROUTING_STATUS[kind]
            await response.status(status).send(body)

        case Value(value=value):
            if is_handled(context):
                if not response.headers_sent:
                    await next()
                return mode
            if streaming and response.headers_sent:
                await response.end(encode_chunk(value))
                return mode
            await _send_value(response, value, always_use_json=config.always_use_json)

        case Rejected(error=error):
            if streaming:
                await next(error)
                return mode
            logger.info("%s %s: handler rejected: %r", request.method, request.path, error)
            body = _error_body(error)
            response.status(400)
            if isinstance(body, (str, bytes)):
                await response.send(body)
            else:
                await response.json(body)

    return mode


async def _send_value(response: ResponseWriter, value: Any, *, always_use_json: bool) -> None:
    if isinstance(value, bytes):
        await response.send(value)
    elif isinstance(value, str) and not always_use_json:
        await response.send(value)
    else:
        await response.json(value)


def _error_body(error: BaseException) -> Any:
    """An explicit ``body`` attribute wins, then the message, then the type."""
    body = getattr(error, "body", None)
    if body is not None:
        return body
    return str(error) or type(error).__name__
