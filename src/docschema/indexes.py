"""Compact descriptors for collection indexes."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, Iterable, List, Tuple

PRIMARY_KEY_INDEX = "_id_"


@dataclass
class IndexDescriptor:
    """Signed field list of one index: ``+a`` ascending, ``-b`` descending."""

    fields: List[str] = field(default_factory=list)
    ordered: bool = True
    unique: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": ",".join(self.fields),
            "ordered": self.ordered,
            "unique": self.unique,
        }


def _key_items(key: Any) -> List[Tuple[str, Any]]:
    # list_indexes() returns a SON, index_information() a list of pairs
    if isinstance(key, Mapping):
        return list(key.items())
    return [(name, direction) for name, direction in key]


def translate_index(raw: Mapping) -> IndexDescriptor:
    descriptor = IndexDescriptor(unique=raw.get("unique") is True)
    for name, direction in _key_items(raw.get("key", {})):
        if isinstance(direction, Real) and not isinstance(direction, bool):
            descriptor.fields.append(("-" if direction < 0 else "+") + name)
        else:
            # hashed, text, 2dsphere and friends carry no sort order
            descriptor.fields.append(name)
            descriptor.ordered = False
    return descriptor


def translate_indexes(raw_indexes: Iterable[Mapping]) -> List[IndexDescriptor]:
    """Translate raw index documents, skipping the primary key index."""
    return [
        translate_index(raw)
        for raw in raw_indexes
        if raw.get("name") != PRIMARY_KEY_INDEX
    ]
