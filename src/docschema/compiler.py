"""Compile aggregate statistics into a row schema and variant catalog."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .aggregate import AggregateState
from .types import (
    CAR_BIN,
    OBJECT,
    OBJECTID,
    OBJECTID_LENGTH,
    storage_type,
    union_type,
)

logger = logging.getLogger(__name__)

CATCH_ALL = "$$"


@dataclass
class CompiledColumn:
    """Storage plan for one field.

    ``union_type`` is None for a field seen with several types; the codes
    of all of them are then listed in ``union_types``.
    """

    storage_type: str
    union_type: Optional[int]
    nested: Optional[Dict[str, "CompiledColumn"]] = None
    length: Optional[int] = None
    union_types: Optional[List[int]] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"types": self.storage_type, "uType": self.union_type}
        if self.union_types is not None:
            d["uTypes"] = list(self.union_types)
        if self.length is not None:
            d["length"] = self.length
        if self.nested is not None:
            d["nested"] = {key: col.to_dict() for key, col in self.nested.items()}
        return d


@dataclass
class CatchAllColumn:
    """The ``$$`` column; ``fields`` lists names kept out of fixed columns."""

    storage_type: str = CAR_BIN
    fields: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"type": self.storage_type}
        if self.fields is not None:
            d["fields"] = list(self.fields)
        return d


Column = Union[CompiledColumn, CatchAllColumn]


@dataclass
class VariantSchemaEntry:
    """One nested shape of a field that is only sometimes present."""

    columns: Dict[str, Column] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"columns": {key: col.to_dict() for key, col in self.columns.items()}}


def _column(tags: List[str], tree: Any = None) -> CompiledColumn:
    if len(tags) != 1:
        return CompiledColumn(
            storage_type=CAR_BIN,
            union_type=None,
            union_types=sorted(union_type(tag) for tag in tags),
        )
    tag = tags[0]
    col = CompiledColumn(storage_type=storage_type(tag), union_type=union_type(tag))
    if tag == OBJECTID:
        col.length = OBJECTID_LENGTH
    elif tag == OBJECT:
        col.nested = compile_tree(tree if isinstance(tree, dict) else {})
    return col


def compile_tree(tree: Dict[str, Dict[str, Any]]) -> Dict[str, CompiledColumn]:
    """Compile a structural projection into nested columns."""
    result = {}
    for key, node in tree.items():
        result[key] = _column(list(node), node.get(OBJECT))
    return result


def compile_schema(
    state: AggregateState, document_count: Optional[int] = None
) -> Tuple[Dict[str, Column], Dict[int, VariantSchemaEntry]]:
    """Split top-level fields into universal columns and the rest.

    Fields present in every document become columns. A partial field that
    was only ever an object adds its last seen shape to the variant
    catalog; any other partial field is named in the ``$$`` column.
    """
    if document_count is None:
        document_count = state.document_count

    columns: Dict[str, Column] = {}
    catalog: Dict[int, VariantSchemaEntry] = {}
    catch_all: List[str] = []

    for path, stat in state.fields.items():
        tags = list(stat.types)
        if stat.total_occurrences == document_count:
            columns[path] = _column(tags, state.structures.get(path))
        elif tags == [OBJECT]:
            entry = VariantSchemaEntry(
                columns=dict(compile_tree(state.structures.get(path, {})))
            )
            entry.columns[CATCH_ALL] = CatchAllColumn()
            catalog[len(catalog) + 1] = entry
        else:
            catch_all.append(path)

    columns[CATCH_ALL] = CatchAllColumn(fields=catch_all)
    logger.debug(
        "Compiled %d columns, %d variants, %d catch-all fields",
        len(columns) - 1,
        len(catalog),
        len(catch_all),
    )
    return columns, catalog
