"""Path-addressed, copy-on-write updates of node values.

Paths are dotted strings with optional index brackets (``"spec.replicas"``,
``"containers[0].image"``) or sequences of keys (``["containers", 0, "image"]``).
Every segment must already exist in the value being updated; a path never
creates structure.
"""

import copy
import dataclasses
import re
from collections.abc import Mapping, MutableMapping
from typing import Any, Sequence, Tuple, Union

from pydantic import BaseModel

from hydragraph.core.errors import PathNotFoundError

Segment = Union[str, int]
PathLike = Union[str, Sequence[Segment]]

_INDEX = re.compile(r"\[(\d+)\]")


def parse_path(path: PathLike, node: str = "") -> Tuple[Segment, ...]:
    """Split ``path`` into segments.

    Raises:
        PathNotFoundError: If the path is empty or malformed
    """
    if isinstance(path, str):
        normalized = _INDEX.sub(r".\1", path)
        if normalized.startswith("."):
            normalized = normalized[1:]
        segments = tuple(normalized.split("."))
        if not path or any(not segment for segment in segments):
            raise PathNotFoundError(node, path, reason="malformed path")
        return segments
    segments = tuple(path)
    if not segments:
        raise PathNotFoundError(node, path, reason="empty path")
    return segments


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _resolve_key(container: Any, segment: Segment, node: str, path: PathLike) -> Segment:
    """Map ``segment`` to an existing key/index/field of ``container``."""
    if isinstance(container, Mapping):
        if segment in container:
            return segment
        if isinstance(segment, str) and segment.isdigit() and int(segment) in container:
            return int(segment)
        if isinstance(segment, int) and str(segment) in container:
            return str(segment)
    elif isinstance(container, BaseModel):
        if isinstance(segment, str) and segment in type(container).model_fields:
            return segment
    elif dataclasses.is_dataclass(container) and not isinstance(container, type):
        if isinstance(segment, str) and segment in {f.name for f in dataclasses.fields(container)}:
            return segment
    elif _is_sequence(container):
        if isinstance(segment, int) or (isinstance(segment, str) and segment.isdigit()):
            index = int(segment)
            if 0 <= index < len(container):
                return index
        elif isinstance(segment, str) and segment in getattr(container, "_fields", ()):
            return container._fields.index(segment)
    raise PathNotFoundError(node, path, segment)


def _get(container: Any, key: Segment) -> Any:
    if isinstance(container, Mapping) or _is_sequence(container):
        return container[key]
    return getattr(container, key)


def _replace(container: Any, key: Segment, child: Any) -> Any:
    """Return a shallow copy of ``container`` with ``key`` set to ``child``."""
    if isinstance(container, MutableMapping):
        updated = copy.copy(container)
        updated[key] = child
        return updated
    if isinstance(container, Mapping):
        updated = dict(container)
        updated[key] = child
        return updated
    if isinstance(container, BaseModel):
        return container.model_copy(update={key: child})
    if dataclasses.is_dataclass(container):
        return dataclasses.replace(container, **{key: child})
    if isinstance(container, tuple):
        if hasattr(container, "_replace"):
            return container._replace(**{container._fields[key]: child})
        return container[:key] + (child,) + container[key + 1:]
    updated = copy.copy(container)
    updated[key] = child
    return updated


def get_in(value: Any, path: PathLike, node: str = "") -> Any:
    """Read the value at ``path``."""
    current = value
    for segment in parse_path(path, node):
        current = _get(current, _resolve_key(current, segment, node, path))
    return current


def set_in(value: Any, path: PathLike, new_value: Any, node: str = "") -> Any:
    """Return a copy of ``value`` with ``new_value`` at ``path``.

    Containers along the path are shallow-copied; everything else is shared
    with the original, which is left untouched.

    Raises:
        PathNotFoundError: If any segment is missing from the value's shape
    """
    segments = parse_path(path, node)

    def assign(container: Any, depth: int) -> Any:
        key = _resolve_key(container, segments[depth], node, path)
        if depth == len(segments) - 1:
            child = new_value
        else:
            child = assign(_get(container, key), depth + 1)
        return _replace(container, key, child)

    return assign(value, 0)
