"""Analyzer settings, loadable from a YAML file."""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .document import check_depth
from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("ascii", "json", "yaml")

# camelCase spellings of the settings are accepted too
_ALIASES = {
    "maxDepth": "max_depth",
    "outputFormat": "output_format",
    "persistResults": "persist_results",
    "resultsDatabase": "results_database",
    "resultsCollection": "results_collection",
    "resultsUser": "results_user",
    "resultsPass": "results_pass",
}


@dataclass
class Config:
    """Where to sample from, how deep to look and what to do with results."""

    collection: Optional[str] = None
    query: Dict[str, Any] = field(default_factory=dict)
    limit: Optional[int] = None
    max_depth: int = 99
    sort: Dict[str, Any] = field(default_factory=lambda: {"_id": -1})
    output_format: str = "ascii"
    persist_results: bool = False
    results_database: str = "docschemaResults"
    results_collection: Optional[str] = None
    results_user: Optional[str] = None
    results_pass: Optional[str] = None
    uri: str = "mongodb://localhost:27017"
    database: Optional[str] = None
    quiet: bool = False

    def __post_init__(self):
        if self.results_collection is None and self.collection:
            self.results_collection = f"{self.collection}Keys"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise InvalidConfiguration(f"Unknown setting: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> "Config":
        check_depth(self.max_depth)
        if self.output_format not in OUTPUT_FORMATS:
            raise InvalidConfiguration(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got {self.output_format!r}"
            )
        if self.limit is not None and (
            isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 0
        ):
            raise InvalidConfiguration(f"limit must be a non-negative integer, got {self.limit!r}")
        if not isinstance(self.query, dict) or not isinstance(self.sort, dict):
            raise InvalidConfiguration("query and sort must be mappings")
        return self

    def log_settings(self) -> None:
        for name, value in self.to_dict().items():
            if name == "results_pass" and value is not None:
                value = "***"
            logger.info("Using %s of %s", name, json.dumps(value, default=str))


def load_config(path: Union[str, Path]) -> Config:
    """Load settings from a YAML file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidConfiguration(f"{path} is not valid YAML: {e}")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path} must contain a mapping of settings")
    return Config.from_dict(data)


def save_config(config: Config, path: Union[str, Path]) -> None:
    """Write settings to a YAML file."""
    path = Path(path)
    path.write_text(
        yaml.dump(
            config.to_dict(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        ),
        encoding="utf-8",
    )
