from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from bibtmpl.ast.nodes import FilterCall, Literal, Node, Section, Template, Variable
from bibtmpl.engine.filters import DEFAULT_REGISTRY, FilterRegistry
from bibtmpl.exceptions import (
    FilterArgumentError,
    SectionMismatchError,
    TemplateSyntaxError,
    UnexpectedCloseError,
    UnknownFilterError,
    UnterminatedSectionError,
)

log = logging.getLogger(__name__)

OPEN = "{{"
CLOSE = "}}"


@dataclass
class _Frame:
    """An open section waiting for its close tag."""

    path: str
    negated: bool
    offset: int
    body: List[Node] = field(default_factory=list)


class Parser:
    """Turns template text into a :class:`Template` tree.

    Text outside ``{{ }}`` is kept verbatim, including whitespace and
    newlines. A ``{{`` with no matching ``}}`` is plain text.
    """

    def __init__(self, registry: Optional[FilterRegistry] = None):
        self.registry = registry if registry is not None else DEFAULT_REGISTRY

    def parse(self, source: str) -> Template:
        """Parse ``source``.

        Raises:
            TemplateSyntaxError: on unbalanced sections, empty tags or
                unknown/ill-formed filters.
        """
        root: List[Node] = []
        stack: List[_Frame] = []
        pos = 0

        for start, end, content in self._scan(source):
            if start > pos:
                self._target(root, stack).append(Literal(source[pos:start], offset=pos))
            pos = end
            self._tag(source, start, content, root, stack)

        if pos < len(source):
            self._target(root, stack).append(Literal(source[pos:], offset=pos))

        if stack:
            frame = stack[-1]
            raise UnterminatedSectionError(frame.path, source, frame.offset)

        template = Template(source=source, nodes=tuple(root))
        log.debug("Parsed template (%d top-level nodes)", len(template.nodes))
        return template

    @staticmethod
    def _scan(source: str):
        """Yield ``(start, end, content)`` for every ``{{ ... }}`` tag."""
        pos = 0
        while True:
            start = source.find(OPEN, pos)
            if start < 0:
                return
            stop = source.find(CLOSE, start + len(OPEN))
            if stop < 0:
                return
            end = stop + len(CLOSE)
            yield start, end, source[start + len(OPEN) : stop]
            pos = end

    @staticmethod
    def _target(root: List[Node], stack: List[_Frame]) -> List[Node]:
        return stack[-1].body if stack else root

    def _tag(
        self,
        source: str,
        offset: int,
        content: str,
        root: List[Node],
        stack: List[_Frame],
    ) -> None:
        body = content.strip()
        if not body:
            raise TemplateSyntaxError("Empty tag", source, offset, tag=content)

        sigil = body[0]
        if sigil in "#^/":
            path = body[1:].strip()
            if not path:
                raise TemplateSyntaxError(
                    f"Missing path in '{{{{{body}}}}}'", source, offset, tag=body
                )
            if "|" in path:
                raise TemplateSyntaxError(
                    f"Filters are not allowed on section tags: '{{{{{body}}}}}'",
                    source,
                    offset,
                    tag=body,
                )
            if sigil == "/":
                self._close(source, offset, path, root, stack)
            else:
                stack.append(_Frame(path=path, negated=sigil == "^", offset=offset))
            return

        path, filters = self._variable(source, offset, body)
        self._target(root, stack).append(Variable(path, filters, offset=offset))

    def _close(
        self,
        source: str,
        offset: int,
        path: str,
        root: List[Node],
        stack: List[_Frame],
    ) -> None:
        if not stack:
            raise UnexpectedCloseError(path, source, offset)
        frame = stack.pop()
        if frame.path != path:
            raise SectionMismatchError(frame.path, path, source, offset)
        section = Section(
            path=frame.path,
            negated=frame.negated,
            body=tuple(frame.body),
            offset=frame.offset,
        )
        self._target(root, stack).append(section)

    def _variable(
        self, source: str, offset: int, body: str
    ) -> Tuple[str, Tuple[FilterCall, ...]]:
        path, *segments = [part.strip() for part in body.split("|")]
        if not path:
            raise TemplateSyntaxError(
                f"Missing path in '{{{{{body}}}}}'", source, offset, tag=body
            )
        filters = []
        for segment in segments:
            try:
                filters.append(self.registry.bind(segment))
            except UnknownFilterError as exc:
                raise UnknownFilterError(exc.name, source, offset) from None
            except FilterArgumentError as exc:
                raise FilterArgumentError(
                    exc.name, exc.detail, source, offset
                ) from None
        return path, tuple(filters)


def parse_template(source: str, registry: Optional[FilterRegistry] = None) -> Template:
    """Parse a template string with a fresh :class:`Parser`."""
    return Parser(registry).parse(source)
