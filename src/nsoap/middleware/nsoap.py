"""Path-as-function-call middleware.

Mounts a handler tree on the host: ``GET /namespace.binary(10,20)`` calls
``tree["namespace"]["binary"](10, 20)`` (through the configured resolver)
and writes the result back.

Usage::

    app = App()
    app.use(NsoapMiddleware(routes, resolve, NsoapConfig(url_prefix="/api")))

Requests outside ``url_prefix`` are passed to ``next()`` untouched.
"""

import logging
from typing import Any

from nsoap._internal.invoke import invoke
from nsoap._internal.types import HandlerTree
from nsoap.adapter import build_dictionaries, invoke_resolver, strip_prefix
from nsoap.config import NsoapConfig
from nsoap.context import build_context
from nsoap.dispatch import DispatchMode, StreamWriter, dispatch, resolve_mode
from nsoap.errors import HTTPError
from nsoap.http.request import Request
from nsoap.http.writer import ResponseWriter
from nsoap.middleware.protocol import Next
from nsoap.resolver import Resolver

logger = logging.getLogger("nsoap.bridge")


class NsoapMiddleware:
    """Bridge between the HTTP request cycle and a call-expression resolver.

    Per request:

    1. strip ``url_prefix``; out-of-scope requests go to ``next()``
    2. read the body (the ``body`` extractor or ``request.data()``) and
       normalize headers, query, body, cookies
    3. build the context (``create_context`` or the default)
    4. call the resolver once, with the stream hook in streaming mode
    5. dispatch the outcome

    Raises ``ConfigurationError`` at construction for invalid options.
    """

    __slots__ = ("config", "resolver", "tree")

    def __init__(
        self,
        tree: HandlerTree,
        resolver: Resolver,
        config: NsoapConfig | None = None,
    ) -> None:
        self.tree = tree
        self.resolver = resolver
        self.config = config or NsoapConfig()
        self.config.validate()

    async def __call__(self, request: Request, response: ResponseWriter, next: Next) -> None:
        """Resolve the request path against the handler tree."""
        cfg = self.config

        expression = strip_prefix(request.path, cfg.url_prefix)
        if expression is None:
            logger.debug("%s outside %s, passing on", request.path, cfg.url_prefix)
            await next()
            return

        body = await self._read_body(request, cfg)
        dictionaries = build_dictionaries(request, body, cfg)
        context = await build_context(request, response, next, cfg.create_context)

        mode = resolve_mode(cfg)
        stream = StreamWriter.from_config(response, cfg) if mode is DispatchMode.STREAMING else None

        outcome = await invoke_resolver(
            self.resolver,
            self.tree,
            expression,
            dictionaries,
            context=context,
            config=cfg,
            on_partial_value=stream,
        )

        try:
            used = await dispatch(
                outcome,
                context=context,
                request=request,
                response=response,
                next=next,
                mode=mode,
                config=cfg,
            )
            logger.debug("%s %s dispatched (%s)", request.method, request.path, used.value)
        except Exception as exc:
            # Takeover handlers and serialization can still fail here
            logger.debug("Dispatch of %r failed: %r", expression, exc)
            await next(exc)

    @staticmethod
    async def _read_body(request: Request, config: NsoapConfig) -> Any:
        if config.body is not None:
            return await invoke(config.body, request)
        try:
            return await request.data()
        except ValueError as exc:
            raise HTTPError(status=400, detail="Malformed request body") from exc
