"""Interface between host frameworks and the recorder."""

from typing import Any, Protocol

from openapi_recorder.record import Record


class RecordExtractor(Protocol):
    """Turns a framework-specific exchange into a Record."""

    def extract_record(self, exchange: Any, **metadata) -> Record | None:
        ...
