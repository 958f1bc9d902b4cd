"""Build Records from ``requests`` responses (e.g. in tests hitting a live server)."""

import json
from urllib.parse import parse_qsl, urlsplit

import requests

from openapi_recorder.record import Record
from openapi_recorder.schema_builder import normalize_content_type


class RequestsExtractor:
    """RecordExtractor for :class:`requests.Response` objects.

    URLs carry no route template, so pass ``path`` (e.g. ``/users/{id}``)
    together with ``path_params`` when the concrete path contains identifiers.
    Only the named request and response headers are recorded.
    """

    def __init__(self, request_headers=(), response_headers=()):
        self.request_headers = list(request_headers)
        self.response_headers = list(response_headers)

    def extract_record(self, exchange: requests.Response, **metadata) -> Record | None:
        request = exchange.request
        if request is None:
            return None

        url = urlsplit(request.url)
        values = {
            "method": request.method,
            "path": url.path or "/",
            "status": exchange.status_code,
            "body": _parse_body(exchange.headers.get("Content-Type"), exchange.content),
            "content_type": normalize_content_type(exchange.headers.get("Content-Type")),
            "query_params": dict(parse_qsl(url.query)) or None,
            "request_params": _parse_request_params(request),
            "request_content_type": normalize_content_type(request.headers.get("Content-Type")),
            "headers": _pick_headers(request.headers, self.request_headers),
            "response_headers": _pick_headers(exchange.headers, self.response_headers),
        }
        values.update(metadata)
        return Record(**values)


def _parse_body(content_type: str | None, content: bytes | None):
    if not content:
        return None
    if content_type and "json" in content_type:
        try:
            return json.loads(content)
        except ValueError:
            return None
    return content.decode("utf-8", errors="replace")


def _parse_request_params(request: requests.PreparedRequest) -> dict | None:
    if not request.body:
        return None
    body = request.body.decode("utf-8", errors="replace") if isinstance(request.body, bytes) else request.body
    content_type = request.headers.get("Content-Type", "")
    if "json" in content_type:
        try:
            parsed = json.loads(body)
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None
    if "x-www-form-urlencoded" in content_type:
        return dict(parse_qsl(body))
    return None


def _pick_headers(headers, names: list[str]) -> dict | None:
    picked = {name: headers[name] for name in names if headers.get(name) is not None}
    return picked or None
