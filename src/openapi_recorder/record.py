"""The observed exchange handed over by framework adapters."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """A single request/response pair observed during a test.

    Field names also accept their camelCase spelling (``contentType``,
    ``queryParams`` ...) so records can be loaded from JSON dumps.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /users/{id} or /users/:id
    status: int
    description: str = ""
    body: Any = None
    content_type: str | None = None
    request_content_type: str | None = None
    request_params: dict | None = None
    path_params: dict | None = None
    query_params: dict | None = None
    headers: dict | None = None
    response_headers: dict | None = None
    security: Any = None
    deprecated: bool | None = None
    tags: list[str] | None = None
    summary: str | None = None
    operation_id: str | None = None
