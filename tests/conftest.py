"""Shared fixtures: a small call-expression resolver and a handler tree.

The resolver here is a test double for the external resolution engine.
It understands ``a.b(x, 20).c()``: dotted segments, optional argument
lists, named arguments looked up in the dictionaries in order, literals
through the normalizer, awaitables, and generators (each yield is a
partial value, the return value is the result).
"""

import inspect
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import pytest

from nsoap.app import App
from nsoap.config import AppConfig, NsoapConfig
from nsoap.errors import RoutingError, RoutingErrorKind
from nsoap.http.writer import ResponseWriter
from nsoap.middleware.nsoap import NsoapMiddleware
from nsoap.normalize import NormalizedDict, normalize_value
from nsoap.resolver import ResolveOptions

_SEGMENT = re.compile(r"^\s*([A-Za-z_$][A-Za-z_$0-9]*)\s*(?:\((.*)\))?\s*$")
_MISSING = object()


def _split(text: str, sep: str) -> list[str]:
    """Split on *sep* outside parentheses."""
    parts: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise RoutingError(RoutingErrorKind.SERVER_ERROR, f"Unbalanced: {text}")
        if char == sep and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    if depth != 0:
        raise RoutingError(RoutingErrorKind.SERVER_ERROR, f"Unbalanced: {text}")
    parts.append(current)
    return parts


def _argument(raw: str, dictionaries: Sequence[NormalizedDict]) -> Any:
    text = raw.strip()
    value = normalize_value(text)
    if isinstance(value, str) and value == text:
        # Bare identifier: a named argument if any dictionary has it
        for dictionary in dictionaries:
            found = dictionary.lookup(text)
            if found is not None:
                return found.value
    return value


def _child(node: Any, name: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(name, _MISSING)
    return getattr(node, name, _MISSING)


async def _settle(result: Any, options: ResolveOptions) -> Any:
    if inspect.isawaitable(result):
        result = await result
    if inspect.isgenerator(result):
        while True:
            try:
                item = next(result)
            except StopIteration as stop:
                return stop.value
            if options.on_partial_value is not None:
                await options.on_partial_value(item)
    return result


async def resolve(
    tree: Any,
    expression: str,
    dictionaries: Sequence[NormalizedDict],
    options: ResolveOptions,
) -> Any:
    """Resolve *expression* against *tree*."""
    segments = _split(expression, ".") if expression else [options.index]
    node = tree
    for segment in segments:
        match = _SEGMENT.match(segment)
        if match is None:
            raise RoutingError(RoutingErrorKind.SERVER_ERROR, f"Bad segment: {segment!r}")
        name, arg_text = match.groups()
        target = _child(node, name)
        if target is _MISSING:
            return RoutingError(RoutingErrorKind.NOT_FOUND, f"No handler: {name}")
        if callable(target):
            args = [_argument(a, dictionaries) for a in _split(arg_text, ",")] if arg_text else []
            if options.context_args:
                if options.prepend_context:
                    args = [*options.context_args, *args]
                else:
                    args = [*args, *options.context_args]
            node = await _settle(target(*args), options)
        else:
            node = target

    # A namespace result falls through to its index handler
    if isinstance(node, Mapping) and callable(node.get(options.index)):
        node = await _settle(node[options.index](), options)
    return node


def _raise(message: str) -> None:
    raise ValueError(message)


async def _add_later(x: int, y: int) -> int:
    return x + y


async def _adder_later(x: int, y: int) -> dict[str, Callable[[int], int]]:
    return {"adder": lambda z: x + y + z}


def _counter(n: int):
    yield {"status": 200, "headers": {"content-type": "text/plain", "x-stream": "yes"}}
    for i in range(n):
        yield f"chunk{i};"
    return "done"


def _takeover() -> Callable[..., Any]:
    async def write(request: Any, response: ResponseWriter) -> None:
        await response.status(201).send(f"taken over at {request.path}")

    return write


ROUTES: dict[str, Any] = {
    "index": lambda: "Home page!",
    "about": lambda: "NSOAP Test Suite",
    "static": "NSOAP Static File",
    "unary": lambda arg: arg + 10,
    "binary": lambda x, y: x + y,
    "namespace": {"binary": lambda x, y: x + y},
    "nested": {"namespace": {"binary": lambda x, y: x + y}},
    "json": lambda payload: payload["x"] + 20,
    "throw": lambda a: _raise("Exception!"),
    "chainAdder1": lambda x: {"chainAdder2": lambda y: x + y},
    "infer": lambda _bool, _num, _str: {"_bool": _bool, "_num": _num, "_str": _str},
    "promiseToAdd": _add_later,
    "functionOnPromise": _adder_later,
    "defaultFunction": lambda x, y: {"index": lambda: x + y},
    "echo": lambda value: value,
    "counter": _counter,
    "takeover": _takeover,
}


@pytest.fixture
def routes() -> dict[str, Any]:
    return dict(ROUTES)


@pytest.fixture
def resolver() -> Callable[..., Any]:
    return resolve


@pytest.fixture
def make_app(routes: dict[str, Any]) -> Callable[..., App]:
    """Build an App with one NsoapMiddleware over the ``routes`` fixture."""

    def factory(config: NsoapConfig | None = None, *, debug: bool = False) -> App:
        return App(AppConfig(debug=debug)).use(NsoapMiddleware(routes, resolve, config))

    return factory
