"""Invocation adapter — from request to resolver call to outcome.

Three steps, each a plain function:

- ``strip_prefix`` decides whether the request is in scope and cuts the
  call expression out of the path.
- ``build_dictionaries`` normalizes the four request surfaces and puts
  them in resolver order: headers, query, body, cookies. It never merges
  them; a caller wanting another precedence pre-merges in a hook.
- ``invoke_resolver`` calls the resolver exactly once and folds every
  result and every failure, sync or async, into an ``Outcome``.
"""

import logging
from collections.abc import Sequence
from typing import Any

from nsoap._internal.invoke import invoke
from nsoap._internal.types import HandlerTree
from nsoap.config import NsoapConfig
from nsoap.context import context_var
from nsoap.errors import RoutingError
from nsoap.http.request import Request
from nsoap.normalize import (
    NormalizedDict,
    as_dictionary,
    parse_body,
    parse_cookies,
    parse_headers,
    parse_query,
)
from nsoap.outcome import Outcome, Rejected, RoutingFailure, Takeover, Value
from nsoap.resolver import PartialValueHook, ResolveOptions, Resolver

logger = logging.getLogger("nsoap.bridge")


def strip_prefix(path: str, prefix: str) -> str | None:
    """Return the call expression under *prefix*, or ``None`` if out of scope.

    The prefix matches whole segments only: ``/api`` covers ``/api`` and
    ``/api/sum(1,2)`` but not ``/apiary``. The leading ``/`` of the
    remainder is dropped, so ``/`` under the root prefix is ``""``.
    """
    base = prefix.rstrip("/")
    if not base:
        remainder = path
    elif path == base:
        remainder = ""
    elif path.startswith(base + "/"):
        remainder = path[len(base) :]
    else:
        return None
    return remainder[1:] if remainder.startswith("/") else remainder


def build_dictionaries(
    request: Request,
    body: Any,
    config: NsoapConfig,
) -> tuple[NormalizedDict, ...]:
    """Normalize the request surfaces, in resolver precedence order."""
    surfaces = (
        ("headers", config.parse_headers or parse_headers, request.headers),
        ("query", config.parse_query or parse_query, request.query),
        ("body", config.parse_body or parse_body, body),
        ("cookies", config.parse_cookies or parse_cookies, request.cookies),
    )
    return tuple(
        as_dictionary(parser(raw), surface=surface) for surface, parser, raw in surfaces
    )


def classify(result: Any) -> Outcome:
    """Map a settled resolver result onto an outcome."""
    if isinstance(result, RoutingError):
        return RoutingFailure(result.kind, result.detail)
    if callable(result):
        return Takeover(result)
    return Value(result)


async def invoke_resolver(
    resolver: Resolver,
    tree: HandlerTree,
    expression: str,
    dictionaries: Sequence[NormalizedDict],
    *,
    context: Any,
    config: NsoapConfig,
    on_partial_value: PartialValueHook | None = None,
) -> Outcome:
    """Call the resolver once and return its outcome. Never raises ``Exception``.

    The context is added to the handler arguments only when
    ``config.append_context`` is set, and is never normalized. It is also
    published through ``context_var`` for the duration of the call.
    """
    options = ResolveOptions(
        index=config.index,
        context_args=(context,) if config.append_context else (),
        prepend_context=config.context_as_first_argument,
        on_partial_value=on_partial_value,
    )

    token = context_var.set(context)
    try:
        result = await invoke(resolver, tree, expression, tuple(dictionaries), options)
    except RoutingError as exc:
        logger.debug("Routing failed for %r: %s", expression, exc.kind.value)
        return RoutingFailure(exc.kind, exc.detail)
    except Exception as exc:
        logger.debug("Invocation of %r rejected: %r", expression, exc)
        return Rejected(exc)
    finally:
        context_var.reset(token)

    return classify(result)
