"""Traversal helpers over untyped, JSON-shaped AST documents.

Every value in a document is one of three variants:

- **Object** – a mapping; these are the nodes the indexer registers.
- **Sequence** – a list or tuple whose elements are visited in order.
- **Leaf** – anything else (strings, numbers, ``None``); never descended into.

:func:`walk_objects` performs an iterative pre-order walk so arbitrarily deep
trees cannot exhaust the interpreter stack. It is shared by the indexer and
the closure engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection, Iterator, Mapping, Optional, Tuple, Union

PathPart = Union[str, int]


class Variant(str, Enum):
    LEAF = "leaf"
    OBJECT = "object"
    SEQUENCE = "sequence"


def variant_of(value: Any) -> Variant:
    if isinstance(value, Mapping):
        return Variant.OBJECT
    if isinstance(value, (list, tuple)):
        return Variant.SEQUENCE
    return Variant.LEAF


def is_internal_field(name: Any) -> bool:
    """Fields with a leading underscore hold bookkeeping, not AST content."""
    return isinstance(name, str) and name.startswith("_")


@dataclass(frozen=True)
class Visit:
    """One object reached during a walk.

    ``parent`` is the nearest enclosing object (``None`` at the top) and
    ``path`` the field names / list positions leading from it to ``node``.
    """

    node: Mapping[str, Any]
    parent: Optional[Mapping[str, Any]]
    path: Tuple[PathPart, ...]


def walk_objects(
    root: Any,
    path: Tuple[PathPart, ...] = (),
    skip: Collection[str] = (),
) -> Iterator[Visit]:
    """Yield every object under *root* in pre-order.

    Internal fields are skipped, as are the fields of *root* named in
    *skip*. An object reachable twice (shared or cyclic references) is
    yielded once.
    """
    seen: set = set()
    stack = [(root, None, path)]
    while stack:
        value, parent, rel = stack.pop()
        kind = variant_of(value)
        if kind is Variant.LEAF:
            continue
        if id(value) in seen:
            continue
        seen.add(id(value))

        if kind is Variant.OBJECT:
            yield Visit(value, parent, rel)
            children = [
                (child, value, (key,))
                for key, child in value.items()
                if not is_internal_field(key) and not (value is root and key in skip)
            ]
        else:
            children = [(child, parent, rel + (pos,)) for pos, child in enumerate(value)]

        # reversed so the first child is popped first
        stack.extend(reversed(children))


def format_path(base: str, path: Tuple[PathPart, ...]) -> str:
    """Render ``("functions", 2)`` under ``$.modules[0]`` as ``$.modules[0].functions[2]``."""
    parts = [base]
    for part in path:
        if isinstance(part, int):
            parts.append(f"[{part}]")
        else:
            parts.append(f".{part}")
    return "".join(parts)
