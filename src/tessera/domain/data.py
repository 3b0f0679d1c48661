"""Tagged-union view over configuration data.

Configuration values are JSON-like trees (dicts, lists and scalars) that may
also hold live handles such as instances, components, datastores or surface
nodes. Every value is classified as exactly one `Kind`:

- ``DESCRIPTOR``: a list whose first element is a dependency tag,
- ``RECORD``: a dict,
- ``ARRAY``: any other list,
- ``OPAQUE``: a live handle (a subclass of `OpaqueHandle`), never entered,
- ``LEAF``: everything else.

The helpers below (cloning, dot-notation access, merging) are all written
against this view so that traversal is total and never enters live handles.
"""

from __future__ import annotations

import enum
import json
import re
from typing import Any

from .values import Tag

DEPENDENCY_TAGS = frozenset(tag.value for tag in Tag)
IGNORE_KEY = "ignore"

_JSON_TEXT = re.compile(r"^(\{.*\}|\[.*\]|true|false|null)$", re.DOTALL)
_MISSING: Any = object()


class OpaqueHandle:  # pylint: disable=too-few-public-methods
    """Marker base for live handles that data walks never enter or copy."""

    __slots__ = ()


class Kind(enum.Enum):
    """Classification of a configuration value."""

    LEAF = "leaf"
    RECORD = "record"
    ARRAY = "array"
    OPAQUE = "opaque"
    DESCRIPTOR = "descriptor"


def is_dependency(value: Any) -> bool:
    """Return True if `value` is a dependency descriptor (``[tag, *args]``)."""
    return (
        isinstance(value, list)
        and len(value) > 0
        and isinstance(value[0], str)
        and value[0] in DEPENDENCY_TAGS
    )


def classify(value: Any) -> Kind:
    """Classify a value for traversal."""
    if isinstance(value, OpaqueHandle):
        return Kind.OPAQUE
    if isinstance(value, list):
        return Kind.DESCRIPTOR if is_dependency(value) else Kind.ARRAY
    if isinstance(value, dict):
        return Kind.RECORD
    return Kind.LEAF


def clone(value: Any) -> Any:
    """Deep-copy records and arrays; opaque handles and leaves are shared."""
    match classify(value):
        case Kind.RECORD:
            return {key: clone(item) for key, item in value.items()}
        case Kind.ARRAY | Kind.DESCRIPTOR:
            return [clone(item) for item in value]
        case _:
            return value


def _get(container: Any, part: str) -> Any:
    if isinstance(container, list):
        if part.isdigit() and int(part) < len(container):
            return container[int(part)]
        return None
    if isinstance(container, dict):
        return container.get(part)
    return getattr(container, part, None)


def _set(container: Any, part: str, value: Any) -> None:
    if isinstance(container, list):
        index = int(part)
        container.extend([None] * (index + 1 - len(container)))
        container[index] = value
    elif isinstance(container, dict):
        container[part] = value
    else:
        setattr(container, part, value)


def deep_value(obj: Any, key: str, value: Any = _MISSING) -> Any:
    """Get or set a nested value addressed by a dot-notation key.

    Args:
        obj: The record (or array) holding the nested value.
        key: Key path in dot notation, e.g. ``"settings.title"`` or ``"values.1"``.
        value: When given, the value to write; missing intermediate containers
            are created (a list when the next key part is numeric).

    Returns:
        The nested value (or the written value), or None if the path is absent.

    Example:
        >>> data = {}
        >>> deep_value(data, "foo.bar", "abc")
        'abc'
        >>> data
        {'foo': {'bar': 'abc'}}
    """
    if obj is None:
        return None
    parts = key.split(".")
    target = obj
    for position, part in enumerate(parts[:-1]):
        nested = _get(target, part)
        if nested is None:
            if value is _MISSING:
                return None
            nested = [] if parts[position + 1].isdigit() else {}
            _set(target, part, nested)
        target = nested
    if value is _MISSING:
        return _get(target, parts[-1])
    _set(target, parts[-1], value)
    return value


def merge(priodata: Any, dataset: Any, as_defaults: bool = False) -> Any:
    """Merge priority data into a copy of a dataset.

    Keys of `priodata` may use dot notation to address nested values of the
    dataset. With `as_defaults`, only values missing from the dataset are set.

    Returns:
        A fresh merged structure; neither argument is modified.
    """
    dataset = clone(dataset)
    if not isinstance(priodata, dict):
        return dataset
    if not isinstance(dataset, dict):
        return clone(priodata)
    for key, value in priodata.items():
        if not as_defaults or deep_value(dataset, str(key)) is None:
            deep_value(dataset, str(key), clone(value))
    return dataset


def is_subset(query: dict[str, Any], record: Any) -> bool:
    """Return True if every (dot-notation) key of `query` matches `record`."""
    return all(deep_value(record, str(key)) == value for key, value in query.items())


def parse_json_text(text: str) -> Any:
    """Parse `text` as JSON if it looks like a JSON document, else return it unchanged."""
    if _JSON_TEXT.match(text.strip()):
        try:
            return json.loads(text)
        except ValueError:
            return text
    return text
