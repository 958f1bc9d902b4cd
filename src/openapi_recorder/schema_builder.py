"""Turn one observed exchange into a minimal OpenAPI document fragment."""

import copy
import re
from dataclasses import dataclass
from typing import Any

from openapi_recorder.document.selector import REF_KEY, SCHEMA_REF_PREFIX
from openapi_recorder.exceptions import OpenAPIRecorderError, UnsupportedTypeError
from openapi_recorder.record import Record

DEFAULT_COMPONENT_NAME = "GeneratedSchema"
DEFAULT_CONTENT_TYPE = "application/json"

METHODS_WITHOUT_BODY = ("get", "delete")


@dataclass
class BuildResult:
    """Outcome of building one record: a fragment or the error that prevented it."""

    record: Record
    fragment: dict | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SchemaBuilder:
    """Builds a path item plus a named component schema for one Record."""

    def __init__(self, component_name: str = DEFAULT_COMPONENT_NAME, enable_example: bool = True):
        self.component_name = component_name
        self.enable_example = enable_example

    def build(self, record: Record) -> dict:
        """Return ``{"paths": {...}, "components": {"schemas": {...}}}`` for ``record``.

        Raises UnsupportedTypeError when the body holds a value that has no
        primitive schema type.
        """
        method = record.method.lower()
        response: dict[str, Any] = {"description": record.description}
        schemas = {}

        headers = self._build_response_headers(record)
        if headers:
            response["headers"] = headers

        if record.body is not None:
            content_type = normalize_content_type(record.content_type) or DEFAULT_CONTENT_TYPE
            schemas[self.component_name] = build_body_schema(record.body)
            media: dict[str, Any] = {"schema": {REF_KEY: SCHEMA_REF_PREFIX + self.component_name}}
            if self.enable_example:
                media["example"] = copy.deepcopy(record.body)
            response["content"] = {content_type: media}

        path = normalize_path(record.path)
        operation = {
            "summary": record.summary or f"{record.method.upper()} {path}",
            "tags": record.tags,
            "operationId": record.operation_id,
            "security": record.security,
            "deprecated": True if record.deprecated else None,
            "parameters": self._build_parameters(record) or None,
            "requestBody": None if method in METHODS_WITHOUT_BODY else self._build_request_body(record),
            "responses": {str(record.status): response},
        }

        fragment: dict[str, Any] = {
            "paths": {path: {method: {k: v for k, v in operation.items() if v is not None}}},
        }
        if schemas:
            fragment["components"] = {"schemas": schemas}
        return fragment

    def try_build(self, record: Record) -> BuildResult:
        try:
            return BuildResult(record=record, fragment=self.build(record))
        except OpenAPIRecorderError as e:
            return BuildResult(record=record, error=e)

    def _build_parameters(self, record: Record) -> list[dict]:
        params = []
        for key, value in (record.path_params or {}).items():
            params.append(self._parameter(key, "path", True, str(value)))
        for key, value in (record.query_params or {}).items():
            params.append(self._parameter(key, "query", False, _wire_value(value)))
        for key, value in (record.headers or {}).items():
            params.append(self._parameter(key, "header", True, _wire_value(value)))
        return params

    def _parameter(self, name, location: str, required: bool, value: Any) -> dict:
        param = {"name": str(name), "in": location, "required": required, "schema": build_property(value)}
        if self.enable_example:
            param["example"] = value
        return param

    def _build_response_headers(self, record: Record) -> dict:
        return {
            str(key): {"schema": build_property(_wire_value(value))}
            for key, value in (record.response_headers or {}).items()
        }

    def _build_request_body(self, record: Record) -> dict | None:
        if not record.request_params or record.status >= 400:
            return None
        content_type = normalize_content_type(record.request_content_type) or DEFAULT_CONTENT_TYPE
        media: dict[str, Any] = {"schema": build_body_schema(record.request_params)}
        if self.enable_example:
            media["example"] = copy.deepcopy(record.request_params)
        return {"content": {content_type: media}}


def infer_type(value: Any) -> str:
    """Map a value to its primitive schema type."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    raise UnsupportedTypeError(value)


def build_property(value: Any) -> dict:
    schema: dict[str, Any] = {"type": infer_type(value)}
    if isinstance(value, list):
        schema["items"] = build_property(value[0]) if value else {}
    return schema


def build_body_schema(body: Any) -> dict:
    """An object schema for mapping bodies, a primitive schema otherwise.

    Every observed key of a mapping body is listed as required.
    """
    if isinstance(body, dict):
        properties = {str(key): build_property(value) for key, value in body.items()}
        return {"type": "object", "properties": properties, "required": list(properties)}
    return build_property(body)


def normalize_path(path: str) -> str:
    """``/users/:id`` -> ``/users/{id}``"""
    return re.sub(r"/:([^:/]+)", r"/{\1}", path)


def normalize_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip()


def _wire_value(value: Any) -> Any:
    # query strings and headers are text on the wire
    if isinstance(value, (str, bool, list)):
        return value
    return str(value)
