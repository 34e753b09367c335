"""Builds endpoint descriptors from an OpenAPI `paths` table.

Each operation is projected into an Endpoint with inlined schemas and example
call arguments. Operations without an operationId are skipped, and an
operation that is malformed, or whose schemas cannot be resolved or sampled,
is left out of the table without affecting the others.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from api_probe.endpoint.base import Body, BuildFailure, Endpoint, ParamInfo
from api_probe.endpoint.calls import build_example_calls
from api_probe.errors import MalformedOperation, SchemaError, UnresolvedReference
from api_probe.loader import document_paths, schema_map
from api_probe.schema.inline import inline_schema
from api_probe.schema.refs import SchemaMap, is_reference, referenced_name

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_JSON_MEDIA = re.compile(r"json$", re.IGNORECASE)
_STREAM_MEDIA = re.compile(r"ndjson$", re.IGNORECASE)
_SNAKE_SEGMENT = re.compile(r"_([a-z])")


def to_camel(name: str) -> str:
    """snake_case to camelCase: `item_get` -> `itemGet`."""
    return _SNAKE_SEGMENT.sub(lambda m: m.group(1).upper(), name)


def is_streaming(media_type: str) -> bool:
    return bool(_STREAM_MEDIA.search(media_type))


def pick_media(content: Mapping[str, Any] | None) -> tuple[str, dict] | None:
    """Select the JSON-like media type of a content map, else the first one."""
    if not content:
        return None
    keys = list(content)
    key = next((k for k in keys if _JSON_MEDIA.search(k)), keys[0])
    return key, content[key] or {}


def build_params(params: list[dict], defs: SchemaMap) -> list[ParamInfo]:
    result = []
    for i, p in enumerate(params):
        if not isinstance(p, Mapping):
            raise MalformedOperation("Parameter must be an object", f"#/parameters/{i}")
        if is_reference(p):
            logger.debug("Skipping parameter reference %s", p["$ref"])
            continue
        raw_schema = p.get("schema") or {}
        result.append(
            ParamInfo(
                name=p.get("name"),
                location=p.get("in", "query"),
                required=bool(p.get("required", False)),
                param_schema=inline_schema(raw_schema, defs),
                example=_declared_example(p),
                ref_name=referenced_name(raw_schema),
                description=p.get("description", ""),
            )
        )
    return result


def build_body(content: Mapping[str, Any] | None, defs: SchemaMap, path: str = "#") -> Body | None:
    if content is not None and not isinstance(content, Mapping):
        raise MalformedOperation("Content must be a map of media types", f"{path}/content")
    media = pick_media(content)
    if media is None:
        return None
    media_type, entry = media
    if not isinstance(entry, Mapping):
        raise MalformedOperation("Media type entry must be an object", f"{path}/content/{media_type}")
    raw_schema = entry.get("schema") or {}
    return Body(
        media_type=media_type,
        body_schema=inline_schema(raw_schema, defs),
        streaming=is_streaming(media_type),
        example=_declared_example(entry),
        ref_name=referenced_name(raw_schema),
    )


def build_request_body(request_body: dict | None, defs: SchemaMap) -> Body | None:
    if not request_body:
        return None
    if not isinstance(request_body, Mapping):
        raise MalformedOperation("Request body must be an object", "#/requestBody")
    if is_reference(request_body):
        raise UnresolvedReference(request_body["$ref"], "#/requestBody", reason="Unsupported $ref")
    return build_body(request_body.get("content"), defs, "#/requestBody")


def build_responses(responses: dict | None, defs: SchemaMap) -> dict[str, Body | None]:
    if responses is None:
        return {}
    if not isinstance(responses, Mapping):
        raise MalformedOperation("Responses must be a map of status codes", "#/responses")

    result: dict[str, Body | None] = {}
    for status_code, resp in responses.items():
        path = f"#/responses/{status_code}"
        if resp is None:
            result[str(status_code)] = None
            continue
        if not isinstance(resp, Mapping):
            raise MalformedOperation("Response must be an object", path)
        if is_reference(resp):
            raise UnresolvedReference(resp["$ref"], path, reason="Unsupported $ref")
        result[str(status_code)] = build_body(resp.get("content"), defs, path)
    return result


def build_endpoint(
    path: str,
    method: str,
    operation: dict,
    defs: SchemaMap,
    shared_params: list[dict] | None = None,
) -> Endpoint | None:
    """Project one operation into an Endpoint; None when it has no operationId."""
    operation_id = operation.get("operationId") if isinstance(operation, Mapping) else None
    if not operation_id:
        return None
    if not isinstance(operation_id, str):
        raise MalformedOperation(f"operationId must be a string, got {operation_id!r}", "#/operationId")

    own_params = _list_field(operation, "parameters")
    params = build_params(_merge_params(shared_params or [], own_params), defs)
    request_body = build_request_body(operation.get("requestBody"), defs)
    response_bodies = build_responses(operation.get("responses"), defs)

    ok_body = response_bodies.get("200")
    streaming = ok_body.streaming if ok_body else False

    return Endpoint(
        operation_id=operation_id,
        method_name=to_camel(operation_id),
        title=operation.get("summary") or operation.get("description") or operation_id,
        method=method.upper(),
        path=path,
        params=params,
        request_body=request_body,
        response_bodies=response_bodies,
        streaming=streaming,
        tags=_list_field(operation, "tags"),
        example_params=build_example_calls(params, request_body, streaming),
    )


def generate_endpoints(
    paths: Mapping[str, Any],
    defs: SchemaMap,
    failures: list[BuildFailure] | None = None,
) -> dict[str, Endpoint]:
    """Build the operationId -> Endpoint table for every operation in `paths`.

    Operations that fail with a SchemaError are logged, appended to `failures`
    when a list is given, and omitted from the result. When two operations share
    an operationId the first one is kept and the second is reported.
    """
    endpoints: dict[str, Endpoint] = {}

    for path, path_item in paths.items():
        if not isinstance(path_item, Mapping):
            continue

        for method, operation in path_item.items():
            if not isinstance(method, str) or method.lower() not in HTTP_METHODS:
                continue
            try:
                shared_params = _list_field(path_item, "parameters")
                ep = build_endpoint(path, method, operation, defs, shared_params)
                if ep is not None and ep.operation_id in endpoints:
                    raise MalformedOperation(
                        f"Duplicate operationId {ep.operation_id!r}, already used by "
                        f"{endpoints[ep.operation_id]}",
                        "#/operationId",
                    )
            except (SchemaError, ValidationError) as e:
                _record_failure(path, method, operation, e, failures)
                continue
            if ep is None:
                logger.debug("Skipping %s %s without operationId", method.upper(), path)
                continue
            endpoints[ep.operation_id] = ep

    return endpoints


def endpoints_from_document(
    doc: Mapping[str, Any],
    failures: list[BuildFailure] | None = None,
) -> dict[str, Endpoint]:
    """Build the endpoint table of a whole OpenAPI document."""
    return generate_endpoints(document_paths(doc), schema_map(doc), failures)


def _record_failure(
    path: str,
    method: str,
    operation: Any,
    error: Exception,
    failures: list[BuildFailure] | None,
) -> None:
    operation_id = operation.get("operationId") if isinstance(operation, Mapping) else None
    logger.warning("Skipping %s %s (%s): %s", method.upper(), path, operation_id, error)
    if failures is not None:
        failures.append(
            BuildFailure(
                path=path,
                method=method.upper(),
                operation_id=operation_id if isinstance(operation_id, str) else None,
                kind=type(error).__name__,
                error=str(error),
            )
        )


def _list_field(obj: Mapping[str, Any], key: str) -> list:
    """A list-valued field of an operation or path item; missing or null gives []."""
    value = obj.get(key) or []
    if not isinstance(value, list):
        raise MalformedOperation(f"'{key}' must be a list", f"#/{key}")
    return list(value)


def _merge_params(shared: list, own: list) -> list:
    """Path-item parameters overridden by operation parameters with the same name and location."""
    own_keys = {(p.get("name"), p.get("in")) for p in own if isinstance(p, Mapping) and not is_reference(p)}
    merged = [
        p for p in shared
        if not isinstance(p, Mapping) or is_reference(p) or (p.get("name"), p.get("in")) not in own_keys
    ]
    return merged + own


def _declared_example(obj: Mapping[str, Any]) -> Any:
    """`example`, else the first `value` of an `examples` map."""
    if "example" in obj:
        return obj["example"]
    examples = obj.get("examples")
    if isinstance(examples, Mapping):
        for entry in examples.values():
            if isinstance(entry, Mapping) and "value" in entry:
                return entry["value"]
    return None
