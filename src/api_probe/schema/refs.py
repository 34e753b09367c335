"""Resolution of `#/components/schemas/<Name>` references."""

import re
from collections.abc import Mapping
from typing import Any

from api_probe.errors import UnresolvedReference

SCHEMA_REF_PREFIX = "#/components/schemas/"

Schema = dict[str, Any]
SchemaMap = Mapping[str, Schema]

_REF_PATTERN = re.compile(r"^#/components/schemas/([^/]+)$")


def is_reference(node: Any) -> bool:
    return isinstance(node, Mapping) and "$ref" in node


def ref_name(ref: str, path: str = "#") -> str:
    """Return the component name a reference points at.

    Raises UnresolvedReference when the string is not a local schema reference.
    """
    match = _REF_PATTERN.match(ref) if isinstance(ref, str) else None
    if not match:
        raise UnresolvedReference(str(ref), path, reason="Unsupported $ref")
    return match.group(1)


def resolve_ref(ref: str, defs: SchemaMap, path: str = "#") -> Schema:
    """Look up the schema a reference designates in the schema map."""
    name = ref_name(ref, path)
    if name not in defs:
        raise UnresolvedReference(ref, path)
    return defs[name]


def referenced_name(node: Any) -> str | None:
    """Component name of a reference node, or None for inline schemas."""
    if not is_reference(node):
        return None
    ref = node["$ref"]
    if isinstance(ref, str) and ref.startswith(SCHEMA_REF_PREFIX):
        return ref.rsplit("/", 1)[-1]
    return None
