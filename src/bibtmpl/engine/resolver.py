"""Path resolution against a stack of scopes.

Paths are dotted (``issued.date-parts.0.0``). The first segment is looked up
from the innermost scope outwards; once a scope answers, the remaining
segments are resolved against that value only. Numeric segments index into
lists. Anything that does not resolve is :data:`MISSING`, never an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from bibtmpl.ast.nodes import CURRENT
from bibtmpl.values import MISSING

_INDEX = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class Scope:
    """One layer of the context stack.

    ``value`` is what ``{{.}}`` refers to. ``bindings`` holds synthetic names
    (loop metadata such as ``@index``) that are checked before the keys of
    ``value``.
    """

    value: Any
    bindings: Mapping[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Any:
        if name in self.bindings:
            return self.bindings[name]
        return step(self.value, name)


def step(value: Any, segment: str) -> Any:
    """Resolve a single path segment against ``value``."""
    if isinstance(value, dict):
        return value.get(segment, MISSING)
    if isinstance(value, list) and _INDEX.fullmatch(segment):
        index = int(segment)
        return value[index] if index < len(value) else MISSING
    return MISSING


def resolve(path: str, scopes: Sequence[Scope]) -> Any:
    """Resolve ``path`` against ``scopes`` (outermost first).

    Returns the value found, or :data:`MISSING`.
    """
    if not scopes:
        return MISSING
    if path == CURRENT:
        return scopes[-1].value

    head, *rest = path.split(".")
    for scope in reversed(scopes):
        current = scope.get(head)
        if current is not MISSING:
            break
    else:
        return MISSING

    for segment in rest:
        current = step(current, segment)
        if current is MISSING:
            break
    return current


def root_scopes(context: Any) -> list[Scope]:
    """Build the initial context stack for a render call."""
    return [Scope(value=context)]


def loop_bindings(index: int, length: int) -> dict[str, Any]:
    """Per-iteration metadata pushed while rendering a list section."""
    return {
        "@index": index,
        "@number": index + 1,
        "@first": index == 0,
        "@last": index == length - 1,
        "@odd": index % 2 == 1,
        "@even": index % 2 == 0,
        "@length": length,
    }


def lookup(path: str, scopes: Sequence[Scope]) -> Any:
    """Like :func:`resolve` but returns ``None`` for absent paths."""
    value = resolve(path, scopes)
    return None if value is MISSING else value

