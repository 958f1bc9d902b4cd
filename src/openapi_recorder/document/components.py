"""Rebuild ``components.schemas`` from the schemas referenced by request and response bodies."""

import logging

from openapi_recorder.document.cleaner import COMPONENT_SELECTORS, cleanup_component_schemas
from openapi_recorder.document.merger import merge, reverse_merge
from openapi_recorder.document.selector import (
    REF_KEY,
    KeyPath,
    dig,
    matched_paths,
    matched_paths_deeply_nested,
    ref_name,
    resolve_ref,
)

logger = logging.getLogger(__name__)

TOP_LEVEL_SELECTORS = (
    "paths.*.*.requestBody.content.*",
    "paths.*.*.responses.*.content.*",
)
NESTED_REF_ENDINGS = (
    "properties.*.$ref",
    "properties.*.items.$ref",
)
# Deeply nested schemas are rare; stop after this many passes.
MAX_NESTED_PASSES = 5


class ComponentsUpdater:
    """Regenerates referenced component schemas from a freshly built document.

    Schemas are discovered from usage: every ``$ref`` under a request or
    response body names a schema whose fresh definition is read from the same
    location in the fresh document. References found inside those schemas'
    properties are then resolved over a bounded number of passes. Existing
    definitions are only extended, never overwritten.
    """

    def __init__(self, max_passes: int = MAX_NESTED_PASSES, selectors=COMPONENT_SELECTORS):
        self.max_passes = max_passes
        self.selectors = selectors

    def update(self, base: dict, fresh: dict) -> dict:
        top_level_refs = self._top_level_refs(base)
        if not top_level_refs:
            return base

        fresh_schemas = self._build_fresh_schemas(top_level_refs, base, fresh)
        if not fresh_schemas:
            return base
        self._resolve_nested(base, fresh_schemas)

        generated = {"components": {"schemas": fresh_schemas}}
        reverse_merge(base, generated)
        cleanup_component_schemas(base, generated, self.selectors)
        return base

    def _top_level_refs(self, base: dict) -> list[tuple[KeyPath, bool]]:
        """Content locations whose schema (or array items) is a component reference."""
        refs = []
        for selector in TOP_LEVEL_SELECTORS:
            for path in matched_paths(base, selector):
                schema = dig(base, (*path, "schema"))
                if not isinstance(schema, dict):
                    continue
                if ref_name(schema.get(REF_KEY)):
                    refs.append((path, False))
                elif isinstance(schema.get("items"), dict) and ref_name(schema["items"].get(REF_KEY)):
                    refs.append((path, True))
        return refs

    def _build_fresh_schemas(self, refs: list[tuple[KeyPath, bool]], base: dict, fresh: dict) -> dict:
        fresh_schemas: dict = {}
        for path, via_items in refs:
            schema = dig(base, (*path, "schema"))
            name = ref_name((schema["items"] if via_items else schema)[REF_KEY])
            body = self._fresh_schema(fresh, path, via_items)
            if body is None:
                logger.debug("No fresh schema for %s at %s", name, ".".join(path))
                continue
            merge(fresh_schemas, {name: body})
        return fresh_schemas

    def _fresh_schema(self, fresh: dict, path: KeyPath, via_items: bool) -> dict | None:
        schema = resolve_ref(fresh, dig(fresh, (*path, "schema")))
        if via_items and isinstance(schema, dict):
            schema = resolve_ref(fresh, schema.get("items"))
        return schema if isinstance(schema, dict) else None

    def _resolve_nested(self, base: dict, fresh_schemas: dict) -> None:
        """Resolve references nested in schema properties, one level per pass."""
        for _ in range(self.max_passes):
            nested_refs = self._unresolved_nested_refs(base, fresh_schemas)
            if not nested_refs:
                return
            resolved = 0
            for path in nested_refs:
                # ("components", "schemas", owner, "properties", prop[, "items"], "$ref")
                owner = path[2]
                if owner not in fresh_schemas:
                    # may be generated by a later pass
                    continue
                nested_schema = dig(fresh_schemas, path[2:-1])
                if not isinstance(nested_schema, dict):
                    logger.debug("Property %s is gone from fresh schema %s", ".".join(path[3:-1]), owner)
                    continue
                name = ref_name(dig(base, path))
                fresh_schemas.setdefault(name, {})
                merge(fresh_schemas[name], nested_schema)
                resolved += 1
            if not resolved:
                return
        logger.debug("Stopped resolving nested schemas after %d passes", self.max_passes)

    def _unresolved_nested_refs(self, base: dict, generated: dict) -> list[KeyPath]:
        paths = []
        for ending in NESTED_REF_ENDINGS:
            for path in matched_paths_deeply_nested(base, "components.schemas", ending):
                name = ref_name(dig(base, path))
                if name and name not in generated:
                    paths.append(path)
        return paths
