"""Reconciliation of recorded exchanges into persisted OpenAPI documents.

One cycle per output document: build a fragment per record, merge them into
a fresh document, fold the fresh document into the persisted one without
overwriting existing values, prune what is no longer observed, regenerate
referenced component schemas and sort for stable diffs.

Fragments reference a placeholder component. The fresh document keeps each
fragment's schema inline at its own location instead, so two endpoints never
share a definition there; the persisted document only gains a reference to
the placeholder where it has no schema of its own yet.
"""

import copy
import logging
from dataclasses import dataclass, field

from openapi_recorder import default_schema
from openapi_recorder.config import Settings
from openapi_recorder.document.cleaner import (
    cleanup,
    cleanup_conflicting_security_parameters,
    cleanup_required_keys,
)
from openapi_recorder.document.components import ComponentsUpdater
from openapi_recorder.document.merger import merge, normalize_keys, reverse_merge
from openapi_recorder.document.selector import (
    REF_KEY,
    SCHEMA_REF_PREFIX,
    KeyPath,
    dig,
    matched_paths,
    resolve_ref,
)
from openapi_recorder.document.sorter import deep_sort
from openapi_recorder.record import Record
from openapi_recorder.schema_builder import BuildResult, SchemaBuilder
from openapi_recorder.schema_file import SchemaFile

logger = logging.getLogger(__name__)

SCHEMA_SELECTORS = (
    "paths.*.*.requestBody.content.*.schema",
    "paths.*.*.responses.*.content.*.schema",
)
RESPONSE_CONTENT_SELECTOR = "paths.*.*.responses.*.content.*"


class RecordAccumulator:
    """Records collected during a test run, grouped by output document."""

    def __init__(self):
        self._records: dict[str, list[Record]] = {}

    def add(self, target: str, record: Record) -> None:
        self._records.setdefault(str(target), []).append(record)

    @property
    def targets(self) -> list[str]:
        return list(self._records)

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())

    def drain(self) -> dict[str, list[Record]]:
        """Hand over everything collected so far and start empty."""
        records, self._records = self._records, {}
        return records


@dataclass
class ReconcileResult:
    document: dict
    failures: list[BuildResult] = field(default_factory=list)


class Reconciler:
    """Runs one reconciliation cycle against a single persisted document."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.builder = SchemaBuilder(
            component_name=self.settings.component_name,
            enable_example=self.settings.enable_example,
        )
        self.components = ComponentsUpdater(
            max_passes=self.settings.max_nested_passes,
            selectors=self.settings.component_prune_selectors,
        )

    @property
    def prune_selectors(self) -> list[str]:
        # hand-written examples survive when none are generated
        if self.settings.enable_example:
            return list(self.settings.prune_selectors)
        return [s for s in self.settings.prune_selectors if "example" not in s.split(".")]

    def build_fresh(self, records: list[Record]) -> tuple[dict, list[BuildResult]]:
        """Merge the inlined fragments of all buildable records; collect the rest as failures."""
        fresh: dict = {}
        failures = []
        for record in records:
            result = self.builder.try_build(record)
            if result.ok:
                merge(fresh, inline_components(result.fragment))
            else:
                logger.warning("Skipping %s %s: %s", record.method, record.path, result.error)
                failures.append(result)
        return fresh, failures

    def reconcile(self, base: dict, records: list[Record]) -> ReconcileResult:
        """Update ``base`` in place from ``records``."""
        normalized = normalize_keys(base)
        base.clear()
        base.update(normalized)

        settings = self.settings
        reverse_merge(base, default_schema.build(
            settings.title,
            version=settings.application_version,
            openapi_version=settings.openapi_version,
            servers=settings.servers,
            security_schemes=settings.security_schemes,
        ))
        if settings.info:
            merge(base, {"info": settings.info})

        fresh, failures = self.build_fresh(records)
        reverse_merge(base, self.placeholder_refs(base, fresh))
        reverse_merge(base, fresh)
        cleanup(base, fresh, self.prune_selectors, settings.prune_array_selectors)
        self.components.update(base, fresh)
        cleanup_required_keys(base)
        cleanup_conflicting_security_parameters(base)
        deep_sort(base)
        return ReconcileResult(document=base, failures=failures)

    def placeholder_refs(self, base: dict, fresh: dict) -> dict:
        """References to the placeholder component for response bodies ``base`` has no schema for."""
        ref = {REF_KEY: SCHEMA_REF_PREFIX + self.settings.component_name}
        refs: dict = {}
        for path in matched_paths(fresh, RESPONSE_CONTENT_SELECTOR):
            schema_path = (*path, "schema")
            if dig(fresh, schema_path) is None or dig(base, schema_path) is not None:
                continue
            merge(refs, _nested(schema_path, ref))
        return refs


def inline_components(fragment: dict) -> dict:
    """Replace component references in body schemas with the fragment's own definitions."""
    components = fragment.pop("components", None)
    if not components:
        return fragment
    lookup = {"components": components}
    for selector in SCHEMA_SELECTORS:
        for path in matched_paths(fragment, selector):
            parent = dig(fragment, path[:-1])
            parent["schema"] = copy.deepcopy(resolve_ref(lookup, parent["schema"]))
    return fragment


def _nested(path: KeyPath, value) -> dict:
    node = value
    for key in reversed(path):
        node = {key: node}
    return node


class ResultRecorder:
    """Reconciles every output document of a run and aggregates failures."""

    def __init__(self, path_records: dict[str, list[Record]], settings: Settings | None = None):
        self.path_records = path_records
        self.settings = settings or Settings()
        self.reconciler = Reconciler(self.settings)
        self.failures: list[BuildResult] = []

    def record_results(self) -> None:
        for path, records in self.path_records.items():
            schema_file = SchemaFile(path, comment=self.settings.comment)
            with schema_file.edit() as spec:
                result = self.reconciler.reconcile(spec, records)
            self.failures.extend(result.failures)
            logger.info("Reconciled %d records into %s", len(records), path)

    @property
    def errors(self) -> bool:
        return bool(self.failures)

    def error_message(self) -> str:
        lines = [f"{failure.error!r}: {failure.record!r}" for failure in self.failures]
        return (
            f"openapi-recorder got errors building {len(self.failures)} requests\n\n"
            + "\n".join(lines)
            + "\n"
        )
