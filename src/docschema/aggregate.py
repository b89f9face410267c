"""Streaming aggregation of per-path type statistics."""

import functools
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .document import analyse_paths, check_depth, project
from .types import OBJECT

logger = logging.getLogger(__name__)


@dataclass
class PathStat:
    """Occurrence counts for one path across the sample."""

    types: Dict[str, int] = field(default_factory=dict)
    total_occurrences: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"types": dict(self.types), "totalOccurrences": self.total_occurrences}

    def copy(self) -> "PathStat":
        return PathStat(types=dict(self.types), total_occurrences=self.total_occurrences)


def merge(partial: Mapping, stats: Dict[str, PathStat]) -> Dict[str, PathStat]:
    """Fold one document's ``{path: tags}`` into cumulative stats.

    Each path counts once per document, however many tags it carried.
    """
    for path, tags in partial.items():
        stat = stats.get(path)
        if stat is None:
            stat = stats[path] = PathStat()
        for tag in tags:
            stat.types[tag] = stat.types.get(tag, 0) + 1
        stat.total_occurrences += 1
    return stats


def merge_stats(
    left: Dict[str, PathStat], right: Dict[str, PathStat]
) -> Dict[str, PathStat]:
    """Combine two stat maps into a new one without touching either."""
    result = {path: stat.copy() for path, stat in left.items()}
    for path, stat in right.items():
        existing = result.get(path)
        if existing is None:
            result[path] = stat.copy()
            continue
        for tag, count in stat.types.items():
            existing.types[tag] = existing.types.get(tag, 0) + count
        existing.total_occurrences += stat.total_occurrences
    return result


@dataclass
class AggregateState:
    """Cumulative result of reducing a document sample.

    ``paths`` holds the flat dotted-path statistics, ``fields`` the
    top-level statistics of the structural view, and ``structures`` the
    last observed object tree for each top-level field seen as an object.
    """

    paths: Dict[str, PathStat] = field(default_factory=dict)
    fields: Dict[str, PathStat] = field(default_factory=dict)
    structures: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    document_count: int = 0

    def add(self, document: Mapping, max_depth: int) -> "AggregateState":
        """Classify one document and merge it into this state."""
        merge(analyse_paths(document, max_depth), self.paths)
        structure = project(document, max_depth)
        merge(structure, self.fields)
        for key, node in structure.items():
            if OBJECT in node:
                tree = node[OBJECT]
                self.structures[key] = tree if isinstance(tree, dict) else {}
        self.document_count += 1
        return self


def merge_states(left: AggregateState, right: AggregateState) -> AggregateState:
    """Fold two shard states; ``right`` wins for captured object trees."""
    structures = dict(left.structures)
    structures.update(right.structures)
    return AggregateState(
        paths=merge_stats(left.paths, right.paths),
        fields=merge_stats(left.fields, right.fields),
        structures=structures,
        document_count=left.document_count + right.document_count,
    )


def fold_states(states: Iterable[AggregateState]) -> AggregateState:
    return functools.reduce(merge_states, states, AggregateState())


def reduce_documents(
    documents: Iterable[Mapping],
    max_depth: int,
    state: Optional[AggregateState] = None,
) -> AggregateState:
    """Stream documents into an aggregate, one at a time."""
    check_depth(max_depth)
    if state is None:
        state = AggregateState()
    for document in documents:
        state.add(document, max_depth)
    logger.debug(
        "Reduced %d documents into %d paths", state.document_count, len(state.paths)
    )
    return state
