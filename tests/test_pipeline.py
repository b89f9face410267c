"""Tests for docschema.pipeline."""

import json

import pytest
from bson.objectid import ObjectId

from docschema.config import Config
from docschema.errors import InvalidConfiguration, InvalidSample
from docschema.pipeline import Result, analyze, analyze_shards, format_result, run
from docschema.plugins import Plugin, PluginSet
from docschema.source import JsonlSource

CORPUS = [{"_id": 1, "name": "a"}, {"_id": 2, "name": "b", "age": 5}]


class TestAnalyze:
    def test_end_to_end(self):
        result = analyze(CORPUS, document_count=2, max_depth=99)
        assert "_id" in result.row_schema
        assert "name" in result.row_schema
        assert "age" not in result.row_schema
        assert result.row_schema["$$"].fields == ["age"]
        assert result.nested_schema_set == {}

    def test_to_dict_omits_empty_sections(self):
        d = analyze(CORPUS, document_count=2).to_dict()
        assert set(d) == {"RowSchema"}
        assert d["RowSchema"]["_id"] == {"types": "Sint32", "uType": 16}
        assert d["RowSchema"]["$$"] == {"type": "CarBin", "fields": ["age"]}

    def test_to_dict_with_indexes_and_variants(self):
        docs = [{"_id": ObjectId(), "o": {"x": 1}}, {"_id": ObjectId()}]
        raw = [
            {"name": "_id_", "key": {"_id": 1}},
            {"name": "idx1", "key": {"a": 1, "b": -1}, "unique": True},
            {"name": "idx2", "key": {"c": "hashed"}},
        ]
        d = analyze(docs, document_count=2, raw_indexes=raw).to_dict()
        assert d["TableIndex"] == [
            {"fields": "+a,-b", "ordered": True, "unique": True},
            {"fields": "c", "ordered": False, "unique": False},
        ]
        assert d["NestedSchemaSet"] == {
            "1": {
                "columns": {
                    "x": {"types": "Sint32", "uType": 16},
                    "$$": {"type": "CarBin"},
                }
            }
        }
        assert d["RowSchema"]["_id"]["length"] == 12

    def test_result_is_json_serializable(self):
        json.dumps(analyze(CORPUS).to_dict())

    def test_count_defaults_to_stream_length(self):
        result = analyze(iter(CORPUS))
        assert result.state.document_count == 2
        assert "name" in result.row_schema

    def test_declared_count_mismatch(self):
        with pytest.raises(InvalidSample) as exc:
            analyze(CORPUS, document_count=3)
        assert exc.value.declared == 3
        assert exc.value.realized == 2

    def test_bad_depth_fails_before_reading(self):
        def documents():
            raise AssertionError("stream should not be read")
            yield {}

        with pytest.raises(InvalidConfiguration):
            analyze(documents(), max_depth=0)

    def test_field_report(self):
        rows = analyze(CORPUS).field_report()
        assert [row.key for row in rows] == ["_id", "name", "age"]

    def test_field_report_without_state(self):
        assert Result(row_schema={}).field_report() == []


class TestAnalyzeShards:
    def test_matches_single_pass(self):
        shards = [CORPUS[:1], CORPUS[1:]]
        sharded = analyze_shards(shards, document_count=2, max_workers=2)
        single = analyze(CORPUS, document_count=2)
        assert sharded.to_dict() == single.to_dict()

    def test_count_checked_after_fold(self):
        with pytest.raises(InvalidSample):
            analyze_shards([CORPUS], document_count=5)


class _Source:
    def __init__(self, docs, indexes=None, declared=None):
        self.docs = docs
        self.indexes = indexes or []
        self.declared = declared
        self.calls = []

    def sample(self, query, sort, limit):
        self.calls.append((query, sort, limit))
        count = self.declared if self.declared is not None else len(self.docs)
        return iter(self.docs), count

    def raw_indexes(self):
        return self.indexes


class TestRun:
    def test_uses_config(self):
        source = _Source(CORPUS)
        config = Config(query={"x": 1}, limit=5, max_depth=3)
        result = run(config, source)
        assert source.calls == [({"x": 1}, {"_id": -1}, 5)]
        assert "_id" in result.row_schema

    def test_invalid_config(self):
        with pytest.raises(InvalidConfiguration):
            run(Config(max_depth=0), _Source(CORPUS))

    def test_short_stream(self):
        with pytest.raises(InvalidSample):
            run(Config(), _Source(CORPUS, declared=10))

    def test_jsonl_source(self, tmp_path):
        f = tmp_path / "docs.jsonl"
        f.write_text('{"_id": 1, "name": "a"}\n{"_id": 2, "name": "b", "age": 5}\n')
        result = run(Config(), JsonlSource(f))
        assert result.row_schema["$$"].fields == ["age"]

    def test_config_hook_can_replace_config(self):
        class Shallow(Plugin):
            def on_config(self, config):
                return Config(max_depth=1)

        result = run(Config(), _Source([{"o": {"x": 1}}]), plugins=[Shallow()])
        assert result.row_schema["o"].nested == {}

    def test_config_hook_returning_none_keeps_config(self):
        seen = []

        class Recorder(Plugin):
            def on_config(self, config):
                seen.append(config.max_depth)

        run(Config(max_depth=7), _Source(CORPUS), plugins=PluginSet([Recorder()]))
        assert seen == [7]


class TestFormatResult:
    def test_ascii_is_field_table(self):
        text = format_result(analyze(CORPUS), "ascii")
        assert "| key" in text
        assert "age" in text

    def test_json(self):
        text = format_result(analyze(CORPUS), "json")
        assert json.loads(text)["RowSchema"]["$$"]["fields"] == ["age"]

    def test_yaml(self):
        text = format_result(analyze(CORPUS), "yaml")
        assert text.startswith("RowSchema:")

    def test_plugin_output_wins(self):
        class Counter(Plugin):
            name = "counter"

            def format_results(self, result):
                return f"{len(result.row_schema)} columns"

        text = format_result(analyze(CORPUS), "json", plugins=[Counter()])
        assert text == "3 columns"

    def test_plugin_returning_none_falls_back(self):
        text = format_result(analyze(CORPUS), "json", plugins=[Plugin()])
        assert json.loads(text)["RowSchema"]


class TestPluginSet:
    def test_execute_collects_outputs(self):
        class A:
            def hook(self, x):
                return x + 1

        class B:
            pass

        plugins = PluginSet([A(), B(), A()])
        assert len(plugins) == 3
        assert plugins.execute("hook", 1) == [2, 2]
