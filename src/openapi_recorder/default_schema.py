"""Skeleton every generated document starts from."""

DEFAULT_OPENAPI_VERSION = "3.0.3"


def build(title: str, version: str = "1.0.0", openapi_version: str = DEFAULT_OPENAPI_VERSION,
          servers: list[dict] | None = None, security_schemes: dict | None = None) -> dict:
    schema = {
        "openapi": openapi_version,
        "info": {
            "title": title,
            "version": version,
        },
    }
    if servers:
        schema["servers"] = servers
    schema["paths"] = {}
    if security_schemes:
        schema["components"] = {"securitySchemes": security_schemes}
    return schema
