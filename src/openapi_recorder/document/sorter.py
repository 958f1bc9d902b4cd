"""Stable key ordering for the parts of a document whose order is incidental."""

from openapi_recorder.document.selector import dig, has_ref, matched_paths

SORT_SELECTORS = (
    "paths",
    "paths.*",
    "paths.*.*.responses",
    "paths.*.*.responses.*.content",
)


def deep_sort(spec: dict, selectors=SORT_SELECTORS) -> dict:
    """Sort paths, methods, status codes and content types lexicographically."""
    for selector in selectors:
        for path in matched_paths(spec, selector):
            node = dig(spec, path)
            if isinstance(node, dict) and not has_ref(node):
                _sort_hash(node)
    return spec


def _sort_hash(node: dict) -> None:
    entries = sorted(node.items(), key=lambda item: item[0])
    node.clear()
    node.update(entries)
