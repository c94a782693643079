"""Template AST nodes.

Nodes are frozen once the parser has built them; the same tree is shared by
every render of a cached template.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Tuple, Union

CURRENT = "."


@dataclass(frozen=True)
class FilterCall:
    """A filter bound to its arguments, e.g. ``truncate:20``."""

    name: str
    args: Tuple[str, ...] = ()
    fn: Callable[[str], str] = field(default=str, compare=False, repr=False)

    def __call__(self, text: str) -> str:
        return self.fn(text)

    @property
    def spec(self) -> str:
        return ":".join((self.name,) + self.args)


@dataclass(frozen=True)
class Literal:
    """Text copied verbatim to the output."""

    text: str
    offset: int = 0


@dataclass(frozen=True)
class Variable:
    """``{{path|filter|...}}``"""

    path: str
    filters: Tuple[FilterCall, ...] = ()
    offset: int = 0

    @property
    def filter_names(self) -> list[str]:
        return [f.name for f in self.filters]

    @property
    def is_current(self) -> bool:
        return self.path == CURRENT


@dataclass(frozen=True)
class Section:
    """``{{#path}}...{{/path}}`` or, when negated, ``{{^path}}...{{/path}}``."""

    path: str
    negated: bool = False
    body: Tuple["Node", ...] = ()
    offset: int = 0

    @property
    def is_current(self) -> bool:
        return self.path == CURRENT


Node = Union[Literal, Variable, Section]


@dataclass(frozen=True)
class Template:
    """Root of a parsed template."""

    source: str
    nodes: Tuple[Node, ...] = ()

    def walk(self):
        """Yield every node depth-first, in source order."""
        stack = list(reversed(self.nodes))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Section):
                stack.extend(reversed(node.body))

    @property
    def paths(self) -> list[str]:
        """Distinct variable and section paths, in first-seen order."""
        seen: dict[str, None] = {}
        for node in self.walk():
            if isinstance(node, (Variable, Section)):
                seen.setdefault(node.path, None)
        return list(seen)
