"""Per-path field report and text renderers."""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from .aggregate import AggregateState
from .document import ARRAY_MARKER

HEADERS = ["key", "types", "occurrences", "percents"]

_NUMERIC = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")
_DECIMALS = re.compile(r"^[0-9]+\.([0-9]+)$")


@dataclass
class FieldReport:
    """One row of the flat per-path report."""

    key: str
    types: Dict[str, int]
    total_occurrences: int
    percent_containing: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": {"key": self.key},
            "value": {"types": dict(self.types)},
            "totalOccurrences": self.total_occurrences,
            "percentContaining": self.percent_containing,
        }


def field_report(
    state: AggregateState, document_count: Optional[int] = None
) -> List[FieldReport]:
    """Rows for every flat path, most common first.

    Paths ending in an array element are dropped; their parent array
    already has a row.
    """
    if document_count is None:
        document_count = state.document_count
    rows = []
    for key, stat in state.paths.items():
        if key.endswith("." + ARRAY_MARKER):
            continue
        percent = stat.total_occurrences * 100.0 / document_count if document_count else 0.0
        rows.append(
            FieldReport(
                key=key,
                types=dict(stat.types),
                total_occurrences=stat.total_occurrences,
                percent_containing=percent,
            )
        )
    rows.sort(key=lambda row: (-row.total_occurrences, row.key))
    return rows


def _significant_digits(value: float) -> int:
    match = _DECIMALS.match(repr(value))
    return len(match.group(1)) if match else 1


def _pad(width: int, text: str, symbol: str) -> str:
    # numbers are right aligned, everything else left aligned
    fill = symbol * max(width - len(text), 0)
    if text == "" or _NUMERIC.match(text):
        return fill + text
    return text + fill


def render_ascii(rows: List[FieldReport]) -> str:
    """Render report rows as a bordered text table."""
    digits = max((_significant_digits(row.percent_containing) for row in rows), default=1)

    body = []
    for row in rows:
        if len(row.types) > 1:
            types = ",".join(f"{tag} ({count})" for tag, count in row.types.items())
        else:
            types = ",".join(row.types)
        body.append(
            [
                row.key,
                types,
                str(row.total_occurrences),
                f"{row.percent_containing:.{digits}f}",
            ]
        )

    table = [HEADERS, ["" for _ in HEADERS]] + body
    widths = [max(len(line[i]) for line in table) for i in range(len(HEADERS))]
    lines = []
    for ri, line in enumerate(table):
        symbol = "-" if ri == 1 else " "
        cells = [_pad(widths[i], cell, symbol) for i, cell in enumerate(line)]
        lines.append("| " + " | ".join(cells) + " |")
    border = "+" + "-" * (len(lines[0]) - 2) + "+"
    return "\n".join([border] + lines + [border])


def render_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def render_yaml(data: Any) -> str:
    return yaml.dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    ).rstrip()
