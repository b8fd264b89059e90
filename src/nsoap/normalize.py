"""Value normalization for request surfaces.

HTTP hands over strings; handlers want numbers, booleans and objects.
A string value is coerced in three steps:

1. ``"true"`` / ``"false"`` become booleans.
2. A bare identifier (``Hello``, ``_x``, ``$ref``) stays a string, so
   unquoted words in a call expression never reach the JSON parser.
3. Anything else must be strict JSON (``20``, ``"quoted"``, ``[1, 2]``,
   ``{"x": 10}``, ``null``); otherwise the key fails to normalize.

Non-string values (an already-decoded JSON body) pass through unchanged,
so normalizing twice is a no-op.

Dictionaries are normalized lazily: ``NormalizedDict`` wraps the raw
surface and coerces only the keys the resolver looks up. A bad value
fails only its own lookup.
"""

import json as json_module
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from nsoap._internal.multimap import MultiValueMapping
from nsoap.errors import NormalizationError

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z_$0-9]*$")

_BOOLEANS = {"true": True, "false": False}


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity by default; strict JSON does not.
    raise ValueError(f"Invalid JSON constant: {name}")


def normalize_value(value: Any, key: str = "") -> Any:
    """Coerce a single raw value. Only strings are touched.

    Raises ``NormalizationError`` when a string is neither a boolean
    literal, a bare identifier, nor valid JSON. *key* is only used for
    the error message.
    """
    if not isinstance(value, str):
        return value
    if value in _BOOLEANS:
        return _BOOLEANS[value]
    if _IDENTIFIER.match(value):
        return value
    try:
        return json_module.loads(value, parse_constant=_reject_constant)
    except ValueError:
        raise NormalizationError(key, value) from None


@dataclass(frozen=True, slots=True)
class Found:
    """A successful lookup. ``value`` may itself be ``None`` (JSON ``null``)."""

    value: Any


class NormalizedDict(Mapping[str, Any]):
    """Read-only, lazily normalized view over one request surface.

    ``lookup(key)`` returns ``None`` for an absent key and ``Found(value)``
    otherwise. With ``coerce=False`` values pass through as-is (headers,
    cookies, body); with ``coerce=True`` strings go through
    ``normalize_value`` (query).

    Repeated keys of a multi-valued source (``?tag=a&tag=b``) come back
    as a list.
    """

    __slots__ = ("_coerce", "_raw", "surface")

    def __init__(self, raw: Mapping[str, Any], *, coerce: bool = True, surface: str = "") -> None:
        self._raw = raw
        self._coerce = coerce
        self.surface = surface

    def lookup(self, key: str) -> Found | None:
        """Look up and normalize one key."""
        if key not in self._raw:
            return None
        if isinstance(self._raw, MultiValueMapping):
            values = self._raw.get_list(key)
            if len(values) > 1:
                return Found([self._convert(key, v) for v in values])
        return Found(self._convert(key, self._raw[key]))

    def _convert(self, key: str, value: Any) -> Any:
        if not self._coerce:
            return value
        return normalize_value(value, key)

    # -- Mapping protocol --

    def __getitem__(self, key: str) -> Any:
        found = self.lookup(key)
        if found is None:
            raise KeyError(key)
        return found.value

    def __contains__(self, key: object) -> bool:
        return key in self._raw

    def __iter__(self) -> Iterator[str]:
        return iter(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def __repr__(self) -> str:
        label = self.surface or "dict"
        return f"NormalizedDict({label}, keys={list(self._raw)!r}, coerce={self._coerce})"


def as_dictionary(value: Any, *, surface: str = "") -> NormalizedDict:
    """Wrap a hook's result so the resolver sees one interface.

    A ``NormalizedDict`` is returned as-is, any other mapping becomes a
    pass-through view, and anything else (``None``, a JSON list) becomes
    an empty one.
    """
    if isinstance(value, NormalizedDict):
        return value
    if isinstance(value, Mapping):
        return NormalizedDict(value, coerce=False, surface=surface)
    return NormalizedDict({}, coerce=False, surface=surface)


# -- Per-surface defaults --


def parse_headers(headers: Mapping[str, str]) -> NormalizedDict:
    """Headers pass through unchanged; coercion is opt-in via a hook."""
    return NormalizedDict(headers, coerce=False, surface="headers")


def parse_query(query: Mapping[str, str]) -> NormalizedDict:
    """Query values always get the three-step coercion."""
    return NormalizedDict(query, coerce=True, surface="query")


def parse_body(body: Any) -> NormalizedDict:
    """The body is already decoded; a missing or non-object body is empty."""
    return as_dictionary(body, surface="body")


def parse_cookies(cookies: Mapping[str, str]) -> NormalizedDict:
    """Cookies pass through unchanged; coercion is opt-in via a hook."""
    return NormalizedDict(cookies, coerce=False, surface="cookies")
