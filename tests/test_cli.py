import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from openapi_recorder.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("OPENAPI", "OPENAPI_PATH", "OPENAPI_TITLE", "OPENAPI_COMMENT", "OPENAPI_VERSION"):
        monkeypatch.delenv(var, raising=False)


class TestCliReconcile:
    def test_writes_document(self, tmp_path):
        output = tmp_path / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, [
            "reconcile", str(FIXTURES / "records.json"),
            "-o", str(output),
            "--title", "Tables API",
        ])

        assert result.exit_code == 0, result.output
        assert "Loaded 3 records" in result.output
        doc = yaml.safe_load(output.read_text())
        assert doc["info"]["title"] == "Tables API"
        assert list(doc["paths"]) == ["/tables", "/tables/{id}"]
        assert list(doc["paths"]["/tables"]) == ["get", "post"]
        get = doc["paths"]["/tables"]["get"]
        assert get["parameters"] == [
            {"name": "page", "in": "query", "required": False, "schema": {"type": "string"}, "example": "1"},
        ]
        assert "application/json" in get["responses"]["200"]["content"]

    def test_comment_option(self, tmp_path):
        output = tmp_path / "openapi.yaml"
        runner = CliRunner()
        runner.invoke(main, ["reconcile", str(FIXTURES / "records.json"), "-o", str(output), "--comment", "generated"])
        assert output.read_text().startswith("# generated\n")

    def test_records_mapping(self, tmp_path):
        records = tmp_path / "records.yaml"
        records.write_text(yaml.safe_dump({"records": [
            {"method": "GET", "path": "/ping", "status": 204},
        ]}))
        output = tmp_path / "openapi.json"
        result = CliRunner().invoke(main, ["reconcile", str(records), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text())["paths"]["/ping"]["get"]["responses"] == {"204": {"description": ""}}

    def test_failed_records_exit_nonzero(self, tmp_path):
        records = tmp_path / "records.json"
        records.write_text(json.dumps([
            {"method": "GET", "path": "/count", "status": 200, "body": {"count": 3}},
            {"method": "GET", "path": "/ping", "status": 204},
        ]))
        output = tmp_path / "openapi.yaml"
        result = CliRunner().invoke(main, ["reconcile", str(records), "-o", str(output)])

        assert result.exit_code == 1
        assert "got errors building 1 requests" in result.output
        assert list(yaml.safe_load(output.read_text())["paths"]) == ["/ping"]

    def test_missing_records_file(self, tmp_path):
        result = CliRunner().invoke(main, ["reconcile", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


class TestCliSort:
    def test_sorts_document(self, tmp_path):
        doc = tmp_path / "openapi.yaml"
        doc.write_text(yaml.safe_dump({"paths": {
            "/b": {"post": {}, "get": {}},
            "/a": {"get": {"responses": {"404": {}, "200": {}}}},
        }}, sort_keys=False))

        result = CliRunner().invoke(main, ["sort", str(doc)])

        assert result.exit_code == 0, result.output
        sorted_doc = yaml.safe_load(doc.read_text())
        assert list(sorted_doc["paths"]) == ["/a", "/b"]
        assert list(sorted_doc["paths"]["/b"]) == ["get", "post"]
        assert list(sorted_doc["paths"]["/a"]["get"]["responses"]) == ["200", "404"]
