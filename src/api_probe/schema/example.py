"""Example synthesizer: deterministic sample values for schema nodes.

Declared examples always win. Otherwise composite keywords are tried branch
by branch, objects and arrays are built from their children, and primitives
fall back to a fixed default: the first enum value, the declared minimum for
numbers, or the zero value of the type.
"""

import logging
from collections.abc import Mapping
from typing import Any

from api_probe.errors import CyclicSchema, NoExampleAvailable, UnresolvedReference
from api_probe.schema.refs import SCHEMA_REF_PREFIX, Schema, SchemaMap, is_reference
from api_probe.schema.visitor import SchemaVisitor, composite_branches, primary_type

logger = logging.getLogger(__name__)

_ZERO_VALUES = {"string": "", "integer": 0, "number": 0, "boolean": False, "null": None}


def declared_example(schema: Schema) -> tuple[bool, Any]:
    """Return (found, value) for an `example` or first `examples` entry."""
    if "example" in schema:
        return True, schema["example"]
    examples = schema.get("examples")
    if isinstance(examples, list) and examples:
        return True, examples[0]
    return False, None


class ExampleSynthesizer(SchemaVisitor[Any]):
    def visit(self, node: Any, path: str = "#") -> Any:
        if not is_reference(node):
            if not isinstance(node, Mapping):
                raise NoExampleAvailable(f"Not a schema object: {node!r}", path)
            found, value = declared_example(node)
            if found:
                return value
        return super().visit(node, path)

    def visit_composite(self, schema: Schema, path: str) -> Any:
        keyword, branches = composite_branches(schema)
        for i, branch in enumerate(branches):
            branch_path = f"{path}/{keyword}/{i}"
            try:
                return self.visit(branch, branch_path)
            except (NoExampleAvailable, CyclicSchema) as e:
                logger.debug("Skipping %s: %s", branch_path, e)
        raise NoExampleAvailable(f"No valid example found in {keyword}", path)

    def visit_object(self, schema: Schema, path: str) -> dict[str, Any]:
        properties = schema.get("properties")
        if not isinstance(properties, Mapping):
            raise NoExampleAvailable("Missing .properties and .example", path)
        return {
            key: self.visit(prop, f"{path}/properties/{key}")
            for key, prop in properties.items()
        }

    def visit_array(self, schema: Schema, path: str) -> list[Any]:
        if "items" not in schema:
            raise NoExampleAvailable("Missing .items and .example", path)
        return [self.visit(schema["items"], f"{path}/items")]

    def visit_primitive(self, schema: Schema, path: str) -> Any:
        enum = schema.get("enum")
        if isinstance(enum, list) and enum:
            return enum[0]

        declared = primary_type(schema)
        if declared in ("integer", "number") and "minimum" in schema:
            return schema["minimum"]
        if declared in _ZERO_VALUES:
            return _ZERO_VALUES[declared]
        raise NoExampleAvailable(f"No example for unknown primitive type {declared!r}", path)


def generate_example(node: Any, defs: SchemaMap) -> Any:
    """Produce an example value conforming to `node`."""
    return ExampleSynthesizer(defs).visit(node)


def generate_schema_example(name: str, defs: SchemaMap) -> Any:
    """Produce an example for the component schema registered under `name`."""
    if name not in defs:
        raise UnresolvedReference(name, reason="Schema not found")
    return ExampleSynthesizer(defs).visit({"$ref": f"{SCHEMA_REF_PREFIX}{name}"})
