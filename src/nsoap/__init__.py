"""nsoap — call functions through the URL path.

``GET /namespace.binary(x,20)?x=10`` resolves ``namespace.binary`` in a
tree of handlers, fills ``x`` from the request (headers, then query,
body, cookies), calls it, and writes the result back as the response.

Basic usage::

    from nsoap import App, NsoapMiddleware

    routes = {
        "index": lambda: "Home page!",
        "binary": lambda x, y: x + y,
        "namespace": {"binary": lambda x, y: x + y},
    }

    app = App()
    app.use(NsoapMiddleware(routes, resolve))
    app.run()

``resolve`` is any call-expression resolver implementing
``nsoap.resolver.Resolver``.
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "DispatchMode",
    "HTTPError",
    "InvocationContext",
    "Middleware",
    "Next",
    "NormalizationError",
    "NormalizedDict",
    "NotFound",
    "NsoapConfig",
    "NsoapError",
    "NsoapMiddleware",
    "Request",
    "ResolveOptions",
    "Resolver",
    "Response",
    "ResponseWriter",
    "RoutingError",
    "RoutingErrorKind",
    "get_context",
    "normalize_value",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import nsoap`` fast while providing a clean top-level API.
    """
    if name == "App":
        from nsoap.app import App

        return App

    if name in ("AppConfig", "NsoapConfig"):
        from nsoap import config as _config

        return getattr(_config, name)

    if name == "Request":
        from nsoap.http.request import Request

        return Request

    if name == "Response":
        from nsoap.http.response import Response

        return Response

    if name == "ResponseWriter":
        from nsoap.http.writer import ResponseWriter

        return ResponseWriter

    if name in ("Middleware", "Next"):
        from nsoap.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "NsoapMiddleware":
        from nsoap.middleware.nsoap import NsoapMiddleware

        return NsoapMiddleware

    if name in ("InvocationContext", "get_context"):
        from nsoap import context as _ctx

        return getattr(_ctx, name)

    if name in ("NormalizedDict", "normalize_value"):
        from nsoap import normalize as _normalize

        return getattr(_normalize, name)

    if name in ("ResolveOptions", "Resolver"):
        from nsoap import resolver as _resolver

        return getattr(_resolver, name)

    if name == "DispatchMode":
        from nsoap.dispatch import DispatchMode

        return DispatchMode

    if name in (
        "ConfigurationError",
        "HTTPError",
        "NormalizationError",
        "NotFound",
        "NsoapError",
        "RoutingError",
        "RoutingErrorKind",
    ):
        from nsoap import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
