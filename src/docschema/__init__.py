"""docschema: schema inference for schema-less document collections."""

__version__ = "0.1.0"

from .errors import DocschemaError, InvalidConfiguration, InvalidSample
from .types import UNDEFINED, classify
from .document import flatten, normalize_path, project
from .aggregate import (
    AggregateState,
    PathStat,
    fold_states,
    merge,
    merge_states,
    reduce_documents,
)
from .compiler import (
    CatchAllColumn,
    CompiledColumn,
    VariantSchemaEntry,
    compile_schema,
)
from .indexes import IndexDescriptor, translate_indexes
from .config import Config, load_config, save_config
from .report import FieldReport, field_report, render_ascii
from .plugins import Plugin, PluginSet
from .pipeline import Result, analyze, analyze_shards, format_result, run

__all__ = [
    "DocschemaError",
    "InvalidConfiguration",
    "InvalidSample",
    "UNDEFINED",
    "classify",
    "flatten",
    "normalize_path",
    "project",
    "AggregateState",
    "PathStat",
    "fold_states",
    "merge",
    "merge_states",
    "reduce_documents",
    "CatchAllColumn",
    "CompiledColumn",
    "VariantSchemaEntry",
    "compile_schema",
    "IndexDescriptor",
    "translate_indexes",
    "Config",
    "load_config",
    "save_config",
    "FieldReport",
    "field_report",
    "render_ascii",
    "Plugin",
    "PluginSet",
    "Result",
    "analyze",
    "analyze_shards",
    "format_result",
    "run",
]
