"""CLI entry point for openapi-recorder."""

from pathlib import Path

import click
import yaml

from openapi_recorder.config import Settings
from openapi_recorder.document.sorter import deep_sort
from openapi_recorder.record import Record
from openapi_recorder.recorder import ResultRecorder
from openapi_recorder.schema_file import SchemaFile


def _load_records(file_path: Path) -> list[Record]:
    """Load a JSON/YAML list of records (or a mapping with a ``records`` list)."""
    data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("records", [])
    return [Record(**item) for item in data]


@click.group()
def main():
    """openapi-recorder: keep an OpenAPI document in sync with observed traffic."""
    pass


@main.command()
@click.argument("records_paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="OpenAPI document to update.")
@click.option("--title", default=None, help="API title for a new document.")
@click.option("--comment", default=None, help="Comment block written at the top of YAML output.")
def reconcile(records_paths: tuple[Path, ...], output: Path | None, title: str | None, comment: str | None):
    """Merge recorded exchanges into the OpenAPI document."""
    overrides = {k: v for k, v in {"title": title, "comment": comment}.items() if v is not None}
    if output is not None:
        overrides["path"] = str(output)
    settings = Settings.from_env(**overrides)

    records: list[Record] = []
    for records_path in records_paths:
        loaded = _load_records(records_path)
        click.echo(f"Loaded {len(loaded)} records from {records_path}")
        records.extend(loaded)

    recorder = ResultRecorder({settings.path: records}, settings=settings)
    recorder.record_results()
    click.echo(f"Updated {settings.path}")

    if recorder.errors:
        click.echo(recorder.error_message(), err=True)
        raise SystemExit(1)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def sort(doc_path: Path):
    """Rewrite a document with paths, methods, statuses and content types sorted."""
    schema_file = SchemaFile(doc_path, comment=Settings.from_env().comment)
    with schema_file.edit() as spec:
        deep_sort(spec)
    click.echo(f"Sorted {doc_path}")
