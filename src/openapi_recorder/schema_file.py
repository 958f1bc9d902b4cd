"""Reading and writing the persisted OpenAPI document."""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import yaml

from openapi_recorder.document.merger import normalize_keys
from openapi_recorder.exceptions import SchemaFileError

logger = logging.getLogger(__name__)


class SchemaFile:
    """A YAML or JSON document on disk (JSON when the suffix is ``.json``)."""

    def __init__(self, path: str | Path, comment: str | None = None):
        self.path = Path(path)
        self.comment = comment

    @contextmanager
    def edit(self) -> Iterator[dict]:
        """Yield the loaded document and write it back once the block succeeds."""
        spec = self.read()
        yield spec
        self.write(spec)

    def read(self) -> dict:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        try:
            content = yaml.safe_load(text)  # also parses JSON
        except yaml.YAMLError as e:
            raise SchemaFileError(f"Cannot parse {self.path}: {e}") from e
        if content is None:
            return {}
        if not isinstance(content, dict):
            raise SchemaFileError(f"{self.path} does not contain a mapping")
        return normalize_keys(content)

    def write(self, spec: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.dumps(spec), encoding="utf-8")
        logger.info("Wrote %s", self.path)

    def dumps(self, spec: dict) -> str:
        spec = normalize_keys(spec)
        if self.is_json:
            return json.dumps(spec, indent=2, ensure_ascii=False) + "\n"
        return self._prepend_comment(
            yaml.safe_dump(spec, sort_keys=False, allow_unicode=True, default_flow_style=False)
        )

    @property
    def is_json(self) -> bool:
        return self.path.suffix == ".json"

    def _prepend_comment(self, content: str) -> str:
        if self.comment is None:
            return content
        lines = self.comment.rstrip("\n").split("\n")
        header = "".join(f"# {line}\n" if line else "#\n" for line in lines)
        return header + content
