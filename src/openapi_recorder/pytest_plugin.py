"""pytest integration.

Enable with ``-p openapi_recorder.pytest_plugin`` and run with ``--openapi``
(or ``OPENAPI=1``). Tests hand exchanges to the ``openapi_record`` fixture;
documents are reconciled once the session finishes.
"""

import pytest

from openapi_recorder.config import Settings
from openapi_recorder.extractors.requests_adapter import RequestsExtractor
from openapi_recorder.record import Record
from openapi_recorder.recorder import RecordAccumulator, ResultRecorder

settings_key = pytest.StashKey[Settings]()
accumulator_key = pytest.StashKey[RecordAccumulator]()
recorder_key = pytest.StashKey[ResultRecorder]()


def pytest_addoption(parser):
    group = parser.getgroup("openapi", "OpenAPI document generation")
    group.addoption("--openapi", action="store_true", default=False,
                    help="Record exchanges and update the OpenAPI document.")
    group.addoption("--openapi-path", default=None,
                    help="Output document (default: $OPENAPI_PATH or doc/openapi.yaml).")


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "openapi(enabled=True, path=None, **metadata): per-test OpenAPI recording options",
    )
    overrides = {}
    if config.getoption("--openapi"):
        overrides["enabled"] = True
    if config.getoption("--openapi-path"):
        overrides["path"] = config.getoption("--openapi-path")
    config.stash[settings_key] = Settings.from_env(**overrides)
    config.stash[accumulator_key] = RecordAccumulator()


class OpenAPIRecorder:
    """Callable handed to tests through the ``openapi_record`` fixture."""

    def __init__(self, settings: Settings, accumulator: RecordAccumulator, marker=None, description: str = ""):
        options = dict(marker.kwargs) if marker else {}
        opted_out = bool(marker and marker.args and marker.args[0] is False) or options.pop("enabled", True) is False
        self.enabled = settings.enabled and not opted_out
        self.target = options.pop("path", None) or settings.path
        self.metadata = options
        self.description = description
        self.accumulator = accumulator
        self.extractor = RequestsExtractor(settings.request_headers, settings.response_headers)

    def __call__(self, exchange, **metadata) -> Record | None:
        if not self.enabled:
            return None
        metadata = _record_fields({**self.metadata, **metadata})
        if isinstance(exchange, Record):
            if not exchange.description and "description" not in metadata:
                metadata["description"] = self.description
            record = exchange.model_copy(update=metadata)
        elif isinstance(exchange, dict):
            record = Record(**{"description": self.description, **exchange, **metadata})
        else:
            record = self.extractor.extract_record(exchange, **{"description": self.description, **metadata})
        if record is not None:
            self.accumulator.add(self.target, record)
        return record


def _record_fields(values: dict) -> dict:
    return {key: value for key, value in values.items() if key in Record.model_fields}


@pytest.fixture
def openapi_record(request):
    """Record an exchange (Record, mapping or requests.Response) for the OpenAPI document."""
    description = request.node.name.removeprefix("test_").replace("_", " ")
    return OpenAPIRecorder(
        request.config.stash[settings_key],
        request.config.stash[accumulator_key],
        marker=request.node.get_closest_marker("openapi"),
        description=description,
    )


def pytest_sessionfinish(session, exitstatus):
    config = session.config
    accumulator = config.stash.get(accumulator_key, None)
    if accumulator is None or not len(accumulator):
        return
    recorder = ResultRecorder(accumulator.drain(), settings=config.stash[settings_key])
    recorder.record_results()
    config.stash[recorder_key] = recorder


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    recorder = config.stash.get(recorder_key, None)
    if recorder is not None and recorder.errors:
        terminalreporter.write_sep("=", "openapi-recorder", red=True)
        terminalreporter.write_line(recorder.error_message(), red=True)
