"""Sample documents, reduce them and compile the result."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .aggregate import AggregateState, fold_states, reduce_documents
from .compiler import Column, VariantSchemaEntry, compile_schema
from .config import Config
from .document import check_depth
from .errors import InvalidSample
from .indexes import IndexDescriptor, translate_indexes
from .plugins import PluginSet
from .report import FieldReport, field_report, render_ascii, render_json, render_yaml

logger = logging.getLogger(__name__)


@dataclass
class Result:
    """RowSchema + TableIndex + NestedSchemaSet for one collection."""

    row_schema: Dict[str, Column]
    table_index: List[IndexDescriptor] = field(default_factory=list)
    nested_schema_set: Dict[int, VariantSchemaEntry] = field(default_factory=dict)
    state: Optional[AggregateState] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        d = {"RowSchema": {key: col.to_dict() for key, col in self.row_schema.items()}}
        if self.table_index:
            d["TableIndex"] = [index.to_dict() for index in self.table_index]
        if self.nested_schema_set:
            d["NestedSchemaSet"] = {
                str(index): entry.to_dict()
                for index, entry in self.nested_schema_set.items()
            }
        return d

    def field_report(self) -> List[FieldReport]:
        if self.state is None:
            return []
        return field_report(self.state)


def _check_count(state: AggregateState, document_count: Optional[int]) -> int:
    if document_count is None:
        return state.document_count
    if state.document_count != document_count:
        raise InvalidSample(document_count, state.document_count)
    return document_count


def build_result(
    state: AggregateState,
    document_count: Optional[int] = None,
    raw_indexes: Optional[Iterable[Mapping]] = None,
) -> Result:
    """Compile a finished aggregate, checking it against the declared count."""
    document_count = _check_count(state, document_count)
    columns, catalog = compile_schema(state, document_count)
    return Result(
        row_schema=columns,
        table_index=translate_indexes(raw_indexes or []),
        nested_schema_set=catalog,
        state=state,
    )


def analyze(
    documents: Iterable[Mapping],
    document_count: Optional[int] = None,
    max_depth: int = 99,
    raw_indexes: Optional[Iterable[Mapping]] = None,
) -> Result:
    """Infer the schema of a document sample in a single streaming pass.

    ``document_count`` is the number of documents the sample is declared to
    hold; when given, a stream of any other length raises InvalidSample.
    """
    check_depth(max_depth)
    state = reduce_documents(documents, max_depth)
    logger.info("Analyzed %d documents", state.document_count)
    return build_result(state, document_count, raw_indexes)


def analyze_shards(
    shards: Iterable[Iterable[Mapping]],
    document_count: Optional[int] = None,
    max_depth: int = 99,
    raw_indexes: Optional[Iterable[Mapping]] = None,
    max_workers: Optional[int] = None,
) -> Result:
    """Reduce disjoint shards concurrently, each into its own state, then fold."""
    check_depth(max_depth)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        states = list(pool.map(lambda shard: reduce_documents(shard, max_depth), shards))
    state = fold_states(states)
    logger.info("Analyzed %d documents in %d shards", state.document_count, len(states))
    return build_result(state, document_count, raw_indexes)


def _plugin_set(plugins) -> PluginSet:
    if isinstance(plugins, PluginSet):
        return plugins
    return PluginSet(plugins)


def run(config: Config, source, plugins=None) -> Result:
    """Apply config hooks, sample ``source`` and analyze what it yields."""
    plugins = _plugin_set(plugins)
    for replacement in plugins.execute("on_config", config):
        if replacement is not None:
            config = replacement
    config.validate()
    config.log_settings()

    documents, count = source.sample(config.query, config.sort, config.limit)
    return analyze(
        documents,
        document_count=count,
        max_depth=config.max_depth,
        raw_indexes=source.raw_indexes(),
    )


def format_result(result: Result, output_format: str = "ascii", plugins=None) -> str:
    """Render a result; output from format_results hooks takes precedence."""
    plugins = _plugin_set(plugins)
    outputs = [out for out in plugins.execute("format_results", result) if out is not None]
    if outputs:
        return "\n".join(outputs)
    if output_format == "json":
        return render_json(result.to_dict())
    if output_format == "yaml":
        return render_yaml(result.to_dict())
    return render_ascii(result.field_report())
