import pytest
import yaml

PLUGIN = ("-p", "openapi_recorder.pytest_plugin")

TEST_FILE = """
import pytest

def test_list_items(openapi_record):
    openapi_record({"method": "GET", "path": "/items", "status": 200, "body": {"items": []}})
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("OPENAPI", "OPENAPI_PATH", "OPENAPI_TITLE", "OPENAPI_COMMENT", "OPENAPI_VERSION"):
        monkeypatch.delenv(var, raising=False)


class TestPytestPlugin:
    def test_records_document(self, pytester):
        pytester.makepyfile(TEST_FILE)
        output = pytester.path / "doc" / "openapi.yaml"

        result = pytester.runpytest(*PLUGIN, "--openapi", f"--openapi-path={output}")

        result.assert_outcomes(passed=1)
        doc = yaml.safe_load(output.read_text())
        response = doc["paths"]["/items"]["get"]["responses"]["200"]
        assert response["description"] == "list items"
        assert doc["components"]["schemas"]["GeneratedSchema"]["properties"]["items"]["type"] == "array"

    def test_disabled_by_default(self, pytester):
        pytester.makepyfile(TEST_FILE)
        output = pytester.path / "openapi.yaml"

        result = pytester.runpytest(*PLUGIN, f"--openapi-path={output}")

        result.assert_outcomes(passed=1)
        assert not output.exists()

    def test_enabled_from_environment(self, pytester, monkeypatch):
        pytester.makepyfile(TEST_FILE)
        output = pytester.path / "openapi.json"
        monkeypatch.setenv("OPENAPI", "1")
        monkeypatch.setenv("OPENAPI_PATH", str(output))

        pytester.runpytest(*PLUGIN).assert_outcomes(passed=1)
        assert output.exists()

    def test_marker_path_and_opt_out(self, pytester):
        other = pytester.path / "other.yaml"
        pytester.makepyfile(f"""
import pytest
from openapi_recorder.record import Record

@pytest.mark.openapi(path={str(other)!r})
def test_ping(openapi_record):
    openapi_record(Record(method="GET", path="/ping", status=204))

@pytest.mark.openapi(False)
def test_secret(openapi_record):
    assert openapi_record({{"method": "GET", "path": "/secret", "status": 200}}) is None

def test_items(openapi_record):
    openapi_record({{"method": "GET", "path": "/items", "status": 200}}, description="all items")
""")
        output = pytester.path / "openapi.yaml"

        pytester.runpytest(*PLUGIN, "--openapi", f"--openapi-path={output}").assert_outcomes(passed=3)

        assert list(yaml.safe_load(other.read_text())["paths"]) == ["/ping"]
        doc = yaml.safe_load(output.read_text())
        assert list(doc["paths"]) == ["/items"]
        assert doc["paths"]["/items"]["get"]["responses"]["200"]["description"] == "all items"

    def test_reports_build_errors(self, pytester):
        pytester.makepyfile("""
def test_count(openapi_record):
    openapi_record({"method": "GET", "path": "/count", "status": 200, "body": {"count": 1}})
""")
        output = pytester.path / "openapi.yaml"

        result = pytester.runpytest(*PLUGIN, "--openapi", f"--openapi-path={output}")

        result.assert_outcomes(passed=1)
        result.stdout.fnmatch_lines(["*openapi-recorder got errors building 1 requests*"])
