"""Error handling pipeline for nsoap requests.

Maps HTTPError exceptions and unexpected failures to responses. Once
headers are out, no status can be sent any more: the error is logged
and the stream is closed instead.
"""

import logging
import traceback

from nsoap.errors import HTTPError
from nsoap.http.request import Request
from nsoap.http.response import Response
from nsoap.http.writer import ResponseWriter

logger = logging.getLogger("nsoap.server")


def error_response(exc: BaseException, *, debug: bool) -> Response:
    """Build the default response for *exc*."""
    if isinstance(exc, HTTPError):
        detail = exc.detail or f"Error {exc.status}"
        if debug and exc.detail:
            detail = f"{exc.status}: {exc.detail}"
        resp = Response(body=detail, status=exc.status)
        for name, value in exc.headers:
            resp = resp.with_header(name, value)
        return resp

    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500, content_type="text/plain; charset=utf-8")
    return Response(body="Internal Server Error", status=500)


async def handle_error(
    exc: BaseException,
    request: Request,
    response: ResponseWriter,
    debug: bool,
) -> None:
    """Answer *exc* on *response*, whatever state the response is in."""
    if isinstance(exc, HTTPError):
        logger.debug("%d %s %s — %s", exc.status, request.method, request.url, exc.detail)
    else:
        logger.error(
            "500 %s %s",
            request.method,
            request.url,
            exc_info=(type(exc), exc, exc.__traceback__),
        )

    if response.finished:
        return
    if response.headers_sent:
        logger.error("%s %s: error after headers were sent, closing stream", request.method, request.url)
        await response.end()
        return
    await response.send_response(error_response(exc, debug=debug))
