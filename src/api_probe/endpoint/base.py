"""Endpoint descriptors built from OpenAPI operations.

Every schema held by these models is fully inlined, so a descriptor can be
serialized or sampled without access to the document it came from.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

Location = Literal["path", "query", "header", "cookie"]


class ParamInfo(BaseModel):
    """A single operation parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: Location
    required: bool
    param_schema: dict
    example: Any = None  # declared override, None when absent
    ref_name: str | None = None  # component name if the schema was a $ref
    description: str = ""


class Body(BaseModel):
    """A request or response payload for the selected media type."""

    model_config = ConfigDict(frozen=True)

    media_type: str
    body_schema: dict
    streaming: bool = False  # newline-delimited JSON stream
    example: Any = None
    ref_name: str | None = None


class Endpoint(BaseModel):
    """One API operation with everything needed to call it."""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    method_name: str  # camelCase client method name
    title: str
    method: str  # GET / POST / PUT / DELETE / PATCH ...
    path: str  # /block/id/{id}
    params: list[ParamInfo]
    request_body: Body | None = None
    response_bodies: dict[str, Body | None]  # {status_code: body or None without content}
    streaming: bool = False
    tags: list[str] = []
    example_params: list[dict[str, Any]] = []

    @property
    def response_schemas(self) -> dict[str, dict | None]:
        return {
            code: body.body_schema if body else None
            for code, body in self.response_bodies.items()
        }

    @property
    def response_media_types(self) -> dict[str, str]:
        return {
            code: body.media_type
            for code, body in self.response_bodies.items()
            if body is not None
        }

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


class BuildFailure(BaseModel):
    """An operation that was left out of the endpoint table."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    operation_id: str | None
    kind: str
    error: str
