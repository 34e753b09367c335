"""Shared recursive walk over OpenAPI schema trees.

Inlining and example generation both walk the same shapes: references,
composite keywords, objects, arrays and primitives. SchemaVisitor resolves
references (guarding against cycles) and dispatches every other node to a
per-kind method that subclasses implement.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Generic, TypeVar

from api_probe.errors import CyclicSchema
from api_probe.schema.refs import Schema, SchemaMap, is_reference, ref_name, resolve_ref

T = TypeVar("T")

COMPOSITE_KEYWORDS = ("oneOf", "anyOf", "allOf")


class NodeKind(str, Enum):
    REFERENCE = "reference"
    COMPOSITE = "composite"
    OBJECT = "object"
    ARRAY = "array"
    PRIMITIVE = "primitive"


def primary_type(schema: Schema) -> str | None:
    """Declared type of a schema, picking the first non-null entry of a type list."""
    declared = schema.get("type")
    if isinstance(declared, list):
        non_null = [t for t in declared if t != "null"]
        if non_null:
            return non_null[0]
        return "null" if declared else None
    return declared


def composite_branches(schema: Schema) -> tuple[str, list] | None:
    """First composite keyword with a non-empty branch list, in oneOf/anyOf/allOf order."""
    for keyword in COMPOSITE_KEYWORDS:
        branches = schema.get(keyword)
        if isinstance(branches, list) and branches:
            return keyword, branches
    return None


def node_kind(node: Any) -> NodeKind:
    if is_reference(node):
        return NodeKind.REFERENCE
    if not isinstance(node, Mapping):
        return NodeKind.PRIMITIVE
    if composite_branches(node):
        return NodeKind.COMPOSITE
    declared = primary_type(node)
    if declared == "object":
        return NodeKind.OBJECT
    if declared == "array":
        return NodeKind.ARRAY
    return NodeKind.PRIMITIVE


class SchemaVisitor(Generic[T]):
    """Base walker; one instance serves a single top-level visit."""

    def __init__(self, defs: SchemaMap):
        self.defs = defs
        self._trail: list[str] = []

    def visit(self, node: Any, path: str = "#") -> T:
        kind = node_kind(node)
        if kind is NodeKind.REFERENCE:
            return self.visit_reference(node["$ref"], path)
        return getattr(self, f"visit_{kind.value}")(node, path)

    def visit_reference(self, ref: str, path: str) -> T:
        name = ref_name(ref, path)
        if name in self._trail:
            raise CyclicSchema([*self._trail, name], path)
        target = resolve_ref(ref, self.defs, path)
        self._trail.append(name)
        try:
            return self.visit(target, path)
        finally:
            self._trail.pop()

    def visit_composite(self, schema: Schema, path: str) -> T:
        raise NotImplementedError

    def visit_object(self, schema: Schema, path: str) -> T:
        raise NotImplementedError

    def visit_array(self, schema: Schema, path: str) -> T:
        raise NotImplementedError

    def visit_primitive(self, schema: Schema, path: str) -> T:
        raise NotImplementedError
