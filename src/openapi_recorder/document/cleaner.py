"""Removal of stale entries from a persisted document.

An entry is stale when it exists in the persisted (base) document at a
selector-matched location but the freshly generated document has nothing
there any more.
"""

import json
from typing import Iterable, Sequence

from openapi_recorder.document.selector import (
    Document,
    KeyPath,
    Selector,
    dig,
    has_ref,
    matched_paths,
    paths_to_all_fields,
    resolve_dig,
)

HASH_SELECTORS = (
    "paths.*",
    "paths.*.*",
    "paths.*.*.requestBody.content.*.schema.properties.*",
    "paths.*.*.requestBody.content.*.example.*",
    "paths.*.*.responses.*.content.*.schema.properties.*",
    "paths.*.*.responses.*.content.*.example.*",
)

# (selector, identity fields)
ARRAY_SELECTORS = (
    ("paths.*.*.parameters", ("name", "in")),
)

COMPONENT_SELECTORS = (
    "components.schemas.*",
    "components.schemas.*.properties.*",
)


def cleanup(
    base: dict,
    fresh: dict,
    hash_selectors: Iterable[str] = HASH_SELECTORS,
    array_selectors: Iterable[tuple[str, Sequence[str]]] = ARRAY_SELECTORS,
) -> dict:
    """Prune URLs, methods, parameters and body properties no longer observed."""
    for selector in hash_selectors:
        cleanup_hash(base, fresh, selector)
    for selector, fields in array_selectors:
        cleanup_array(base, fresh, selector, fields)
    return base


def cleanup_component_schemas(
    base: dict, fresh: dict, selectors: Iterable[str] = COMPONENT_SELECTORS
) -> dict:
    for selector in selectors:
        cleanup_hash(base, fresh, selector)
    return base


def cleanup_hash(base: dict, fresh: dict, selector: "str | Selector") -> dict:
    """Delete keys matched by ``selector`` in ``base`` that ``fresh`` lacks."""
    for path in matched_paths(base, selector):
        if _crosses_ref(base, path):
            continue
        if dig(base, path) is None or resolve_dig(fresh, path) is not None:
            continue
        parent = dig(base, path[:-1]) if len(path) > 1 else base
        parent.pop(path[-1], None)
    return base


def cleanup_array(
    base: dict, fresh: dict, selector: "str | Selector", fields: Sequence[str] = ()
) -> dict:
    """Keep only list elements whose identity also appears in ``fresh``.

    Survivors are sorted by their identity fields and deduplicated; for
    duplicate identities the last element in the original order is kept.
    """
    for path in matched_paths(base, selector):
        if _crosses_ref(base, path):
            continue
        target = dig(base, path)
        spec = resolve_dig(fresh, path)
        if not isinstance(target, list) or not isinstance(spec, list):
            continue
        spec_identities = {_identity(e, fields) for e in spec}
        kept = [e for e in target if _identity(e, fields) in spec_identities]
        kept.sort(key=lambda e: _sort_key(e, fields))
        deduplicated: dict[str, Document] = {}
        for element in kept:
            identity = _identity(element, fields)
            deduplicated.pop(identity, None)
            deduplicated[identity] = element
        survivors = sorted(deduplicated.values(), key=lambda e: _sort_key(e, fields))
        target[:] = survivors
    return base


def cleanup_required_keys(base: dict) -> dict:
    """Drop ``required`` names whose property is gone, then ``required`` lists left empty."""
    for path in paths_to_all_fields(base):
        if path[-1] != "required" or _crosses_ref(base, path):
            continue
        parent = dig(base, path[:-1]) if len(path) > 1 else base
        required = parent.get("required") if isinstance(parent, dict) else None
        if not isinstance(required, list):
            continue
        properties = parent.get("properties")
        if isinstance(properties, dict):
            required[:] = [name for name in required if name in properties]
        if not required:
            del parent["required"]
    return base


def cleanup_conflicting_security_parameters(base: dict) -> dict:
    """Remove header parameters that carry the credentials of an operation's security schemes."""
    schemes = dig(base, ("components", "securitySchemes"))
    if not isinstance(schemes, dict):
        return base
    for path in matched_paths(base, "paths.*.*.security"):
        if _crosses_ref(base, path):
            continue
        operation = dig(base, path[:-1])
        params = operation.get("parameters")
        names = _security_header_names(schemes, operation["security"])
        if not isinstance(params, list) or not names:
            continue
        params[:] = [
            p for p in params
            if not (isinstance(p, dict) and p.get("in") == "header" and str(p.get("name", "")).lower() in names)
        ]
        if not params:
            del operation["parameters"]
    return base


def _security_header_names(schemes: dict, requirements) -> set[str]:
    names = set()
    for requirement in requirements if isinstance(requirements, list) else []:
        for scheme_name in requirement if isinstance(requirement, dict) else ():
            scheme = schemes.get(scheme_name)
            if not isinstance(scheme, dict):
                continue
            if scheme.get("type") == "apiKey" and scheme.get("in") == "header" and scheme.get("name"):
                names.add(str(scheme["name"]).lower())
            elif scheme.get("type") in ("http", "oauth2", "openIdConnect"):
                names.add("authorization")
    return names


def _crosses_ref(obj: dict, path: KeyPath) -> bool:
    """True when any ancestor of ``path`` is a reference node."""
    return any(has_ref(dig(obj, path[:i])) for i in range(1, len(path)))


def _projection(element: Document, fields: Sequence[str]) -> Document:
    if fields and isinstance(element, dict):
        return {f: element[f] for f in fields if f in element}
    return element


def _identity(element: Document, fields: Sequence[str]) -> str:
    return json.dumps(_projection(element, fields), sort_keys=True, default=str)


def _sort_key(element: Document, fields: Sequence[str]) -> str:
    if fields and isinstance(element, dict):
        return "-".join(str(element.get(f, "")) for f in fields)
    return _identity(element, fields)
