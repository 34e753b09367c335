import copy
import json
from pathlib import Path

import pytest

from api_probe.errors import CyclicSchema, MissingStructure, UnresolvedReference
from api_probe.loader import load_document, schema_map
from api_probe.schema.inline import inline_named_schema, inline_schema
from api_probe.schema.visitor import NodeKind, node_kind, primary_type

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def defs():
    return schema_map(load_document(FIXTURES / "utxo.yaml"))


class TestInlineSchema:
    def test_block_is_reference_free(self, defs):
        inlined = inline_named_schema("Block", defs)

        props = inlined["properties"]
        assert props["id"] == defs["BlockId"]

        transactions = props["transactions"]
        assert transactions["type"] == "array"
        assert "hash" in transactions["items"]["properties"]
        assert "$ref" not in json.dumps(inlined)

    def test_composite_branches_are_inlined(self, defs):
        inlined = inline_named_schema("Block", defs)
        header = inlined["properties"]["header"]
        assert header["oneOf"][0] == inline_named_schema("Header", defs)
        assert header["oneOf"][1] == {"type": "null"}

    def test_any_of_branches_are_inlined(self, defs):
        schema = {
            "anyOf": [
                {"$ref": "#/components/schemas/Hash"},
                {"$ref": "#/components/schemas/BlockId"},
            ]
        }
        assert inline_schema(schema, defs) == {"anyOf": [defs["Hash"], defs["BlockId"]]}

    def test_all_of_branches_are_inlined(self, defs):
        schema = {
            "allOf": [
                {"$ref": "#/components/schemas/Asset"},
                {"type": "object", "properties": {"utxo": {"$ref": "#/components/schemas/Utxo"}}},
            ]
        }
        inlined = inline_schema(schema, defs)

        assert inlined["allOf"][0] == defs["Asset"]
        utxo = inlined["allOf"][1]["properties"]["utxo"]
        assert utxo["properties"]["assets"]["items"] == defs["Asset"]
        assert "$ref" not in json.dumps(inlined)

    def test_reference_at_root(self, defs):
        assert inline_schema({"$ref": "#/components/schemas/Hash"}, defs) == defs["Hash"]

    def test_idempotent(self, defs):
        once = inline_named_schema("Block", defs)
        assert inline_schema(once, {}) == once

    def test_input_not_mutated(self, defs):
        before = copy.deepcopy(defs)
        inline_named_schema("Block", defs)
        assert defs == before

    def test_additional_properties_inlined(self):
        defs = {"Asset": {"type": "string"}}
        schema = {"type": "object", "additionalProperties": {"$ref": "#/components/schemas/Asset"}}
        assert inline_schema(schema, defs) == {"type": "object", "additionalProperties": {"type": "string"}}

    def test_leaf_fields_pass_through(self):
        schema = {"type": "string", "enum": ["a", "b"], "example": "a", "description": "letter"}
        assert inline_schema(schema, {}) == schema


class TestInlineErrors:
    def test_unresolved_reference(self):
        schema = {"type": "object", "properties": {"x": {"$ref": "#/components/schemas/Nope"}}}
        with pytest.raises(UnresolvedReference) as exc:
            inline_schema(schema, {})
        assert exc.value.path == "#/properties/x"

    def test_unknown_root_name(self, defs):
        with pytest.raises(UnresolvedReference):
            inline_named_schema("Nope", defs)

    def test_array_without_items(self):
        with pytest.raises(MissingStructure):
            inline_schema({"type": "array"}, {})

    def test_object_without_properties(self):
        with pytest.raises(MissingStructure):
            inline_schema({"type": "object"}, {})

    def test_object_with_example_needs_no_properties(self):
        schema = {"type": "object", "example": {"a": 1}}
        assert inline_schema(schema, {}) == schema

    def test_direct_cycle(self):
        defs = {"Node": {"type": "object", "properties": {"next": {"$ref": "#/components/schemas/Node"}}}}
        with pytest.raises(CyclicSchema) as exc:
            inline_named_schema("Node", defs)
        assert exc.value.chain == ["Node", "Node"]

    def test_transitive_cycle(self):
        defs = {
            "A": {"type": "object", "properties": {"b": {"$ref": "#/components/schemas/B"}}},
            "B": {"type": "array", "items": {"$ref": "#/components/schemas/A"}},
        }
        with pytest.raises(CyclicSchema) as exc:
            inline_schema({"$ref": "#/components/schemas/A"}, defs)
        assert exc.value.chain == ["A", "B", "A"]

    def test_repeated_sibling_reference_is_not_a_cycle(self, defs):
        schema = {
            "type": "object",
            "properties": {
                "a": {"$ref": "#/components/schemas/Hash"},
                "b": {"$ref": "#/components/schemas/Hash"},
            },
        }
        inlined = inline_schema(schema, defs)
        assert inlined["properties"]["a"] == inlined["properties"]["b"] == defs["Hash"]


class TestNodeKind:
    def test_kinds(self):
        assert node_kind({"$ref": "#/components/schemas/A"}) is NodeKind.REFERENCE
        assert node_kind({"anyOf": [{"type": "string"}]}) is NodeKind.COMPOSITE
        assert node_kind({"type": "object", "oneOf": []}) is NodeKind.OBJECT
        assert node_kind({"type": "array", "items": {}}) is NodeKind.ARRAY
        assert node_kind({"type": "boolean"}) is NodeKind.PRIMITIVE

    def test_primary_type_of_type_list(self):
        assert primary_type({"type": ["null", "integer"]}) == "integer"
        assert primary_type({"type": ["null"]}) == "null"
        assert primary_type({}) is None
