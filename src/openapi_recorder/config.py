"""Recorder settings, with overrides taken from the environment."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from openapi_recorder.default_schema import DEFAULT_OPENAPI_VERSION
from openapi_recorder.document.cleaner import ARRAY_SELECTORS, COMPONENT_SELECTORS, HASH_SELECTORS
from openapi_recorder.document.components import MAX_NESTED_PASSES
from openapi_recorder.schema_builder import DEFAULT_COMPONENT_NAME

DEFAULT_PATH = "doc/openapi.yaml"
TRUTHY = ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Where and how documents are written."""

    enabled: bool = False
    path: str = DEFAULT_PATH
    comment: str | None = None
    title: str = Field(default_factory=lambda: Path.cwd().name)
    info: dict = {}  # merged over the generated info block
    application_version: str = "1.0.0"
    openapi_version: str = DEFAULT_OPENAPI_VERSION
    servers: list[dict] = []
    security_schemes: dict = {}  # written to components.securitySchemes
    enable_example: bool = True
    request_headers: list[str] = []  # request headers recorded as header parameters
    response_headers: list[str] = []  # response headers documented per response
    component_name: str = DEFAULT_COMPONENT_NAME
    max_nested_passes: int = MAX_NESTED_PASSES
    prune_selectors: list[str] = list(HASH_SELECTORS)
    prune_array_selectors: list[tuple[str, tuple[str, ...]]] = list(ARRAY_SELECTORS)
    component_prune_selectors: list[str] = list(COMPONENT_SELECTORS)

    @classmethod
    def from_env(cls, environ: dict | None = None, **overrides) -> "Settings":
        """Build settings from ``OPENAPI*`` variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values: dict = {"enabled": env.get("OPENAPI", "").lower() in TRUTHY}
        mapping = {
            "OPENAPI_PATH": "path",
            "OPENAPI_TITLE": "title",
            "OPENAPI_COMMENT": "comment",
            "OPENAPI_VERSION": "application_version",
        }
        for var, field in mapping.items():
            if env.get(var):
                values[field] = env[var]
        values.update(overrides)
        return cls(**values)
