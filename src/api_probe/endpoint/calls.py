"""Example call arguments for exercising an endpoint.

The first variant passes every parameter; each following variant passes the
required parameters plus a single optional one, so the effect of every
optional parameter can be observed on its own.
"""

import copy
from typing import Any

from api_probe.endpoint.base import Body, ParamInfo
from api_probe.schema.example import generate_example

STREAM_PARSE_MODE = "stream"


def build_example_calls(
    params: list[ParamInfo],
    request_body: Body | None,
    streaming: bool,
) -> list[dict[str, Any]]:
    """Build `1 + len(optional params)` argument sets for an endpoint."""
    required = [p for p in params if p.required]
    optional = [p for p in params if not p.required]

    variants = [required + optional]
    variants.extend(required + [p] for p in optional)

    body = _body_example(request_body) if request_body else None
    return [_render_call(variant, request_body is not None, body, streaming) for variant in variants]


def param_example(param: ParamInfo) -> Any:
    """Declared example of a parameter, else one generated from its schema."""
    if param.example is not None:
        return param.example
    return generate_example(param.param_schema, {})


def _body_example(body: Body) -> Any:
    if body.example is not None:
        return body.example
    return generate_example(body.body_schema, {})


def _render_call(
    params: list[ParamInfo],
    has_body: bool,
    body: Any,
    streaming: bool,
) -> dict[str, Any]:
    call: dict[str, Any] = {}
    for param in params:
        call.setdefault(param.location, {})[param.name] = copy.deepcopy(param_example(param))
    if has_body:
        call["body"] = copy.deepcopy(body)
    if streaming:
        call["parse_as"] = STREAM_PARSE_MODE
    return call
