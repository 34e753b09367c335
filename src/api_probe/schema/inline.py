"""Schema inliner: rewrites a schema into an equivalent tree without `$ref`."""

from collections.abc import Mapping
from typing import Any

from api_probe.errors import MissingStructure, UnresolvedReference
from api_probe.schema.refs import SCHEMA_REF_PREFIX, Schema, SchemaMap
from api_probe.schema.visitor import COMPOSITE_KEYWORDS, SchemaVisitor

_OPEN_OBJECT_KEYS = ("additionalProperties", *COMPOSITE_KEYWORDS, "example", "examples")


class SchemaInliner(SchemaVisitor[Schema]):
    """Replaces every reachable reference with a copy of the schema it names.

    Inputs are never modified: each schema object on the way is shallow-copied
    before its children are replaced.
    """

    def visit_composite(self, schema: Schema, path: str) -> Schema:
        return self._rewrite(schema, path)

    def visit_object(self, schema: Schema, path: str) -> Schema:
        if "properties" not in schema and not any(k in schema for k in _OPEN_OBJECT_KEYS):
            raise MissingStructure("Object schema without .properties", path)
        return self._rewrite(schema, path)

    def visit_array(self, schema: Schema, path: str) -> Schema:
        if "items" not in schema:
            raise MissingStructure("Array schema without .items", path)
        return self._rewrite(schema, path)

    def visit_primitive(self, schema: Any, path: str) -> Any:
        if not isinstance(schema, Mapping):
            return schema
        return self._rewrite(schema, path)

    def _rewrite(self, schema: Schema, path: str) -> Schema:
        out = dict(schema)

        properties = schema.get("properties")
        if isinstance(properties, Mapping):
            out["properties"] = {
                key: self.visit(prop, f"{path}/properties/{key}")
                for key, prop in properties.items()
            }

        if "items" in schema:
            out["items"] = self.visit(schema["items"], f"{path}/items")

        extra = schema.get("additionalProperties")
        if isinstance(extra, Mapping):
            out["additionalProperties"] = self.visit(extra, f"{path}/additionalProperties")

        for keyword in COMPOSITE_KEYWORDS:
            branches = schema.get(keyword)
            if isinstance(branches, list):
                out[keyword] = [
                    self.visit(branch, f"{path}/{keyword}/{i}")
                    for i, branch in enumerate(branches)
                ]

        return out


def inline_schema(node: Any, defs: SchemaMap) -> Schema:
    """Return a reference-free copy of `node`, resolving refs against `defs`."""
    return SchemaInliner(defs).visit(node)


def inline_named_schema(name: str, defs: SchemaMap) -> Schema:
    """Inline the component schema registered under `name`."""
    if name not in defs:
        raise UnresolvedReference(name, reason="Schema not found")
    return SchemaInliner(defs).visit({"$ref": f"{SCHEMA_REF_PREFIX}{name}"})
