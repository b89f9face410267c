"""Per-document projections: dotted flat paths and nested structure."""

import re
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional, Set, Tuple

from .errors import InvalidConfiguration
from .types import OBJECT, classify, is_container

ARRAY_MARKER = "XX"

_INDEX_SEGMENT = re.compile(r"\.\d+")


def check_depth(max_depth: Any) -> int:
    """Reject depth budgets that would silently produce empty output."""
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise InvalidConfiguration(f"max_depth must be an integer, got {max_depth!r}")
    if max_depth < 1:
        raise InvalidConfiguration(f"max_depth must be at least 1, got {max_depth}")
    return max_depth


def normalize_path(path: str) -> str:
    """Rewrite every ``.<digits>`` segment to ``.XX``.

    Sibling array elements then share one path. Numeric object keys below
    the top level are rewritten too.
    """
    return _INDEX_SEGMENT.sub("." + ARRAY_MARKER, path)


def _items(value: Any) -> Iterator[Tuple[str, Any]]:
    if isinstance(value, Mapping):
        for key, child in value.items():
            yield str(key), child
    else:
        for index, child in enumerate(value):
            yield str(index), child


def _flatten_into(
    result: Dict[str, Any], value: Any, prefix: Optional[str], depth: int
) -> Dict[str, Any]:
    for key, child in _items(value):
        path = key if prefix is None else f"{prefix}.{key}"
        result[path] = child
        if depth > 1 and is_container(child):
            _flatten_into(result, child, path, depth - 1)
    return result


def flatten(document: Mapping, max_depth: int) -> Dict[str, Any]:
    """Map every field, at every level up to max_depth, to its dotted path.

    Containers are recorded at their own path as well as being descended
    into, so one value can appear under several path depths.
    """
    check_depth(max_depth)
    return _flatten_into({}, document, None, max_depth)


def analyse_paths(document: Mapping, max_depth: int) -> Dict[str, Set[str]]:
    """Classify a flattened document into ``{normalized path: {tags}}``."""
    result: Dict[str, Set[str]] = {}
    for path, value in flatten(document, max_depth).items():
        result.setdefault(normalize_path(path), set()).add(classify(value))
    return result


def _project_into(
    result: Dict[str, Dict[str, Any]], value: Mapping, depth: int
) -> Dict[str, Dict[str, Any]]:
    for key, child in _items(value):
        tag = classify(child)
        node = result.setdefault(key, {})
        if tag == OBJECT and depth > 1 and isinstance(child, Mapping):
            node[tag] = _project_into({}, child, depth - 1)
        else:
            node[tag] = True
    return result


def project(document: Mapping, max_depth: int) -> Dict[str, Dict[str, Any]]:
    """Project a document into a ``field -> {tag: subtree | True}`` tree.

    Only objects are descended into; arrays stay leaves. Top-level keys are
    normalized the same way as flat paths so both views line up.
    """
    check_depth(max_depth)
    result: Dict[str, Dict[str, Any]] = {}
    for key, child in _items(document):
        tag = classify(child)
        node = result.setdefault(normalize_path(key), {})
        if tag == OBJECT and max_depth > 1 and isinstance(child, Mapping):
            node[tag] = _project_into({}, child, max_depth - 1)
        else:
            node[tag] = True
    return result
