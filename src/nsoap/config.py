"""Application and bridge configuration.

Both configs are frozen dataclasses — immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from nsoap._internal.types import SurfaceParser
from nsoap.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Host application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB


@dataclass(frozen=True, slots=True)
class NsoapConfig:
    """Configuration for the path-as-function-call bridge.

    Read once per request, never mutated::

        NsoapConfig(
            url_prefix="/api",
            append_context=True,
            context_as_first_argument=True,
        )

    ``append_context`` decides whether the context is passed to handlers
    at all; ``context_as_first_argument`` only decides where it goes.
    ``body`` replaces ``request.data()`` as the source of the body
    dictionary; it receives the request and may be sync or async. The
    ``parse_*`` hooks replace the default normalizer for one surface.
    """

    # Routing
    url_prefix: str = "/"
    index: str = "index"

    # Context injection
    append_context: bool = False
    context_as_first_argument: bool = False
    create_context: Callable[..., Any] | None = None

    # Buffered responses
    always_use_json: bool = False

    # Streaming
    stream_response: bool = False
    stream_headers: Callable[..., Any] | None = None
    stream_chunk: Callable[..., Any] | None = None

    # Request body source
    body: Callable[..., Any] | None = None

    # Per-surface normalizer overrides
    parse_headers: SurfaceParser | None = None
    parse_query: SurfaceParser | None = None
    parse_body: SurfaceParser | None = None
    parse_cookies: SurfaceParser | None = None

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if the options contradict each other."""
        if not self.url_prefix.startswith("/"):
            msg = f"url_prefix must start with '/', got {self.url_prefix!r}"
            raise ConfigurationError(msg)
        if not self.index:
            raise ConfigurationError("index must name a handler")
        if not self.stream_response and (
            self.stream_headers is not None or self.stream_chunk is not None
        ):
            msg = "stream_headers/stream_chunk require stream_response=True"
            raise ConfigurationError(msg)
        for name in (
            "body",
            "create_context",
            "stream_headers",
            "stream_chunk",
            "parse_headers",
            "parse_query",
            "parse_body",
            "parse_cookies",
        ):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                msg = f"{name} must be callable, got {type(hook).__name__}"
                raise ConfigurationError(msg)
