"""Shared type aliases used across nsoap modules."""

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

# Handler tree — nested mappings/objects of handlers and static values.
# Only the resolver walks it; the bridge treats it as opaque.
HandlerTree: TypeAlias = Mapping[str, Any] | object

# Hook replacing the default normalizer for one request surface
SurfaceParser: TypeAlias = Callable[[Any], Any]
