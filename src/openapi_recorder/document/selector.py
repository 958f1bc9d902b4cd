"""Selector queries over document trees.

A selector is a dot-separated key pattern such as
``paths.*.*.responses.*.content.application/json`` where ``*`` matches any
single key. Only mapping keys are navigated; list elements are opaque.
"""

from dataclasses import dataclass
from typing import Iterable

WILDCARD = "*"
REF_KEY = "$ref"
SCHEMA_REF_PREFIX = "#/components/schemas/"

Document = dict[str, "Document"] | list["Document"] | str | int | float | bool | None
KeyPath = tuple[str, ...]


@dataclass(frozen=True)
class Selector:
    """An immutable sequence of literal segments and wildcards."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, text: "str | Selector") -> "Selector":
        if isinstance(text, Selector):
            return text
        return cls(tuple(text.split(".")))

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return ".".join(self.segments)

    def matches(self, path: KeyPath) -> bool:
        """Positional equality-or-wildcard match of a concrete key path."""
        if len(path) != len(self.segments):
            return False
        return all(
            key == segment or (segment == WILDCARD and key is not None)
            for key, segment in zip(path, self.segments)
        )


def paths_to_all_fields(obj: Document) -> list[KeyPath]:
    """Every key path reachable through mappings, in depth-first order."""
    if not isinstance(obj, dict):
        return []
    paths: list[KeyPath] = []
    for key, value in obj.items():
        key = str(key)
        paths.append((key,))
        paths.extend((key, *sub) for sub in paths_to_all_fields(value))
    return paths


def matched_paths(obj: Document, selector: "str | Selector") -> list[KeyPath]:
    """Return every concrete key path in ``obj`` matched by ``selector``."""
    selector = Selector.parse(selector)
    if not len(selector):
        return []
    return [path for path in paths_to_all_fields(obj) if selector.matches(path)]


def matched_paths_deeply_nested(obj: Document, begin: str, end: str) -> list[KeyPath]:
    """Match ``begin.<any number of keys>.end`` at every depth present in ``obj``."""
    begin_parts = tuple(begin.split("."))
    end_parts = tuple(end.split("."))
    depths = sorted({len(path) for path in paths_to_all_fields(obj)})
    result: list[KeyPath] = []
    for depth in depths:
        gap = depth - len(begin_parts) - len(end_parts)
        if gap < 0:
            continue
        result.extend(matched_paths(obj, Selector(begin_parts + (WILDCARD,) * gap + end_parts)))
    return result


def dig(obj: Document, path: Iterable[str]) -> Document:
    """Read the value at ``path``; None when any step is missing or not a mapping."""
    node = obj
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def has_ref(node: Document) -> bool:
    return isinstance(node, dict) and REF_KEY in node


def ref_name(ref: str) -> str | None:
    """``#/components/schemas/Name`` -> ``Name``; None for any other pointer."""
    if isinstance(ref, str) and ref.startswith(SCHEMA_REF_PREFIX):
        return ref[len(SCHEMA_REF_PREFIX):]
    return None


def resolve_ref(root: Document, node: Document, limit: int = 10) -> Document:
    """Follow component-schema pointers of ``node`` within ``root``."""
    while limit and has_ref(node):
        name = ref_name(node[REF_KEY])
        target = dig(root, ("components", "schemas", name)) if name else None
        if target is None:
            break
        node = target
        limit -= 1
    return node


def resolve_dig(obj: Document, path: Iterable[str]) -> Document:
    """Like ``dig`` but follows component-schema pointers on the way down."""
    node = obj
    for key in path:
        if key != REF_KEY:
            node = resolve_ref(obj, node)
        if not isinstance(node, dict):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node
