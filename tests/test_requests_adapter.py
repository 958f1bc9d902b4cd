import json

import requests

from openapi_recorder.extractors.requests_adapter import RequestsExtractor


def _response(method="GET", url="http://api.test/tables", status=200, body=None,
              content_type="application/json; charset=utf-8", **request_kwargs) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if body is not None:
        response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
        response.headers["Content-Type"] = content_type
    else:
        response._content = b""
    response.request = requests.Request(method, url, **request_kwargs).prepare()
    return response


class TestRequestsExtractor:
    def test_json_response(self):
        record = RequestsExtractor().extract_record(_response(body={"tables": []}))
        assert record.method == "GET"
        assert record.path == "/tables"
        assert record.status == 200
        assert record.body == {"tables": []}
        assert record.content_type == "application/json"

    def test_query_params(self):
        record = RequestsExtractor().extract_record(_response(url="http://api.test/tables?page=2&q=x"))
        assert record.path == "/tables"
        assert record.query_params == {"page": "2", "q": "x"}

    def test_json_request_params(self):
        response = _response(method="POST", status=201, body={"name": "t"}, json={"name": "t"})
        record = RequestsExtractor().extract_record(response)
        assert record.method == "POST"
        assert record.request_params == {"name": "t"}

    def test_form_request_params(self):
        response = _response(method="POST", status=201, data={"name": "t"})
        record = RequestsExtractor().extract_record(response)
        assert record.request_params == {"name": "t"}
        assert record.request_content_type == "application/x-www-form-urlencoded"

    def test_json_request_content_type(self):
        response = _response(method="POST", status=201, json={"name": "t"})
        assert RequestsExtractor().extract_record(response).request_content_type == "application/json"

    def test_only_configured_headers_are_recorded(self):
        response = _response(body={"tables": []}, headers={"X-Api-Version": "2", "Cookie": "s=1"})
        response.headers["X-Total-Count"] = "10"
        response.headers["Set-Cookie"] = "s=2"
        extractor = RequestsExtractor(request_headers=["X-Api-Version"], response_headers=["X-Total-Count"])
        record = extractor.extract_record(response)
        assert record.headers == {"X-Api-Version": "2"}
        assert record.response_headers == {"X-Total-Count": "10"}

    def test_no_headers_by_default(self):
        response = _response(body={"tables": []}, headers={"X-Api-Version": "2"})
        record = RequestsExtractor().extract_record(response)
        assert record.headers is None
        assert record.response_headers is None

    def test_text_body(self):
        response = _response(body=b"pong", content_type="text/plain")
        record = RequestsExtractor().extract_record(response)
        assert record.body == "pong"
        assert record.content_type == "text/plain"

    def test_empty_body(self):
        record = RequestsExtractor().extract_record(_response(status=204))
        assert record.body is None
        assert record.content_type is None

    def test_metadata_overrides(self):
        response = _response(url="http://api.test/tables/42", body={"name": "t"})
        record = RequestsExtractor().extract_record(
            response, path="/tables/{id}", path_params={"id": "42"}, description="returns a table",
        )
        assert record.path == "/tables/{id}"
        assert record.path_params == {"id": "42"}
        assert record.description == "returns a table"

    def test_without_request(self):
        response = requests.Response()
        response.status_code = 200
        assert RequestsExtractor().extract_record(response) is None
