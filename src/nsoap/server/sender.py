"""ASGI response sending — translates responses into ASGI messages.

Handles both standard single-body responses and the two phases of a
chunked stream (head, then body chunks).
"""

from collections.abc import Iterable

from nsoap._internal.asgi import Send
from nsoap.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _encode_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers]


async def send_response(response: Response, send: Send) -> None:
    """Translate a buffered Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    raw_headers.extend(_encode_headers(response.headers))

    body = response.body_bytes if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def send_head(status: int, headers: Iterable[tuple[str, str]], send: Send) -> None:
    """Open a chunked response: send status and headers, no body yet.

    No content-length — chunked transfer encoding signals body boundaries.
    A content-type is only added when the caller did not supply one.
    """
    raw_headers = _encode_headers(headers)
    if not any(name == b"content-type" for name, _ in raw_headers):
        raw_headers.insert(0, (b"content-type", b"text/plain; charset=utf-8"))
    raw_headers.append((b"transfer-encoding", b"chunked"))

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": raw_headers,
        }
    )


async def send_chunk(chunk: str | bytes, send: Send, *, more_body: bool = True) -> None:
    """Send one body chunk of an open stream.

    ``more_body=False`` closes the stream; the chunk may be empty.
    """
    body = chunk.encode("utf-8") if isinstance(chunk, str) else chunk
    await send(
        {
            "type": "http.response.body",
            "body": body,
            "more_body": more_body,
        }
    )
