"""Deep merging of document trees.

Both merge modes mutate ``target`` in place so that key order already present
in a hand-edited document is kept. Lists and scalars are replaced wholesale.
A mapping carrying a ``$ref`` marker is treated as a leaf and never merged into.
"""

from openapi_recorder.document.selector import Document, has_ref


def normalize_keys(value: Document) -> Document:
    """Return a copy of ``value`` with every mapping key converted to ``str``."""
    if isinstance(value, dict):
        return {str(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(v) for v in value]
    return value


def merge(target: dict, source: dict) -> dict:
    """Merge ``source`` into ``target``; values from ``source`` win on conflict."""
    return _merge(target, normalize_keys(source), overwrite=True)


def reverse_merge(target: dict, source: dict) -> dict:
    """Merge ``source`` into ``target``; values already in ``target`` are kept."""
    return _merge(target, normalize_keys(source), overwrite=False)


def _merge(target: dict, source: dict, overwrite: bool) -> dict:
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict) and not has_ref(current):
            _merge(current, value, overwrite)
        elif key not in target or overwrite:
            target[key] = value
    return target
