"""Tests for docschema.compiler."""

from bson.objectid import ObjectId

from docschema.aggregate import reduce_documents
from docschema.compiler import (
    CATCH_ALL,
    CatchAllColumn,
    CompiledColumn,
    compile_schema,
    compile_tree,
)


def _compile(docs, max_depth=99):
    state = reduce_documents(docs, max_depth)
    return compile_schema(state, len(docs))


class TestUniversalColumns:
    def test_scalar_columns(self):
        columns, catalog = _compile([{"_id": 1, "name": "a"}, {"_id": 2, "name": "b"}])
        assert columns["_id"] == CompiledColumn(storage_type="Sint32", union_type=16)
        assert columns["name"] == CompiledColumn(storage_type="StrZero", union_type=2)
        assert catalog == {}

    def test_objectid_has_fixed_length(self):
        columns, _ = _compile([{"_id": ObjectId()}, {"_id": ObjectId()}])
        assert columns["_id"].storage_type == "Fixed"
        assert columns["_id"].union_type == 7
        assert columns["_id"].length == 12

    def test_object_compiles_nested(self):
        docs = [
            {"addr": {"city": "x", "geo": {"lat": 1.5}}},
            {"addr": {"city": "y", "geo": {"lat": 2.5}}},
        ]
        columns, _ = _compile(docs)
        addr = columns["addr"]
        assert addr.storage_type == "Nested"
        assert addr.union_type == 3
        assert addr.nested["city"] == CompiledColumn(storage_type="StrZero", union_type=2)
        assert addr.nested["geo"].nested["lat"] == CompiledColumn(
            storage_type="Float64", union_type=1
        )

    def test_nested_arrays_are_nested_storage(self):
        columns, _ = _compile([{"a": {"list": [1, 2]}}])
        assert columns["a"].nested["list"] == CompiledColumn(storage_type="Nested", union_type=4)

    def test_polymorphic_universal_column(self):
        columns, _ = _compile([{"v": 1}, {"v": "s"}])
        assert columns["v"].storage_type == "CarBin"
        assert columns["v"].union_type is None
        assert columns["v"].union_types == [2, 16]

    def test_no_nested_map_for_scalars(self):
        columns, _ = _compile([{"a": 1}])
        assert columns["a"].nested is None
        assert "nested" not in columns["a"].to_dict()


class TestPartialFields:
    def test_partial_scalar_goes_to_catch_all(self):
        columns, catalog = _compile(
            [{"_id": 1, "name": "a"}, {"_id": 2, "name": "b", "age": 5}]
        )
        assert "age" not in columns
        assert columns[CATCH_ALL].fields == ["age"]
        assert catalog == {}

    def test_partial_object_goes_to_catalog(self):
        docs = [{"_id": 1}, {"_id": 2, "extra": {"x": 1}}]
        columns, catalog = _compile(docs)
        assert "extra" not in columns
        assert columns[CATCH_ALL].fields == []
        assert list(catalog) == [1]
        entry = catalog[1]
        assert entry.columns["x"] == CompiledColumn(storage_type="Sint32", union_type=16)
        assert entry.columns[CATCH_ALL] == CatchAllColumn()

    def test_catalog_keys_are_sequential(self):
        docs = [{"_id": 1, "a": {"x": 1}}, {"_id": 2, "b": {"y": "s"}}, {"_id": 3}]
        _, catalog = _compile(docs)
        assert sorted(catalog) == [1, 2]

    def test_partial_mixed_object_goes_to_catch_all(self):
        docs = [{"_id": 1, "p": {"x": 1}}, {"_id": 2, "p": 5}, {"_id": 3}]
        columns, catalog = _compile(docs)
        assert columns[CATCH_ALL].fields == ["p"]
        assert catalog == {}

    def test_identical_shapes_not_deduplicated(self):
        docs = [{"_id": 1, "a": {"x": 1}, "b": {"x": 1}}, {"_id": 2}]
        _, catalog = _compile(docs)
        assert len(catalog) == 2
        assert catalog[1] == catalog[2]


class TestPartition:
    def test_every_field_in_exactly_one_place(self):
        docs = [
            {"_id": 1, "a": 1, "o": {"x": 1}, "m": [1]},
            {"_id": 2, "a": 2, "s": "x"},
            {"_id": 3, "a": 3, "o": {"y": 2}},
        ]
        state = reduce_documents(docs, 99)
        columns, catalog = compile_schema(state, 3)
        universal = [key for key in columns if key != CATCH_ALL]
        catch_all = columns[CATCH_ALL].fields
        assert sorted(universal) == ["_id", "a"]
        assert sorted(catch_all) == ["m", "s"]
        assert len(catalog) == 1
        assert len(universal) + len(catch_all) + len(catalog) == len(state.fields)

    def test_universal_iff_present_everywhere(self):
        docs = [{"a": 1, "b": 1}, {"a": 2}]
        state = reduce_documents(docs, 99)
        columns, _ = compile_schema(state, 2)
        for path, stat in state.fields.items():
            assert (path in columns) == (stat.total_occurrences == 2)

    def test_defaults_to_state_count(self):
        state = reduce_documents([{"a": 1}, {"b": 1}], 99)
        columns, _ = compile_schema(state)
        assert sorted(columns[CATCH_ALL].fields) == ["a", "b"]


class TestToDict:
    def test_column_shape(self):
        columns, _ = _compile([{"_id": ObjectId(), "o": {"n": True}}])
        assert columns["_id"].to_dict() == {"types": "Fixed", "uType": 7, "length": 12}
        assert columns["o"].to_dict() == {
            "types": "Nested",
            "uType": 3,
            "nested": {"n": {"types": "Uint08", "uType": 8}},
        }
        assert columns[CATCH_ALL].to_dict() == {"type": "CarBin", "fields": []}

    def test_variant_entry_shape(self):
        _, catalog = _compile([{"_id": 1, "o": {"n": None}}, {"_id": 2}])
        assert catalog[1].to_dict() == {
            "columns": {"n": {"types": "", "uType": 10}, "$$": {"type": "CarBin"}}
        }


class TestCompileTree:
    def test_exhausted_branch_compiles_empty(self):
        assert compile_tree({"a": {"Object": True}})["a"].nested == {}
