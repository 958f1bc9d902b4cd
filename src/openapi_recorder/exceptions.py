"""Errors raised while turning observed exchanges into OpenAPI documents."""


class OpenAPIRecorderError(Exception):
    """Base class for all openapi-recorder errors."""


class UnsupportedTypeError(OpenAPIRecorderError):
    """A body value has no primitive schema type."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"type detection is not implemented for: {value!r}")


class SchemaFileError(OpenAPIRecorderError):
    """A persisted document could not be read."""
