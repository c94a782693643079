"""Renderer - evaluates a parsed template against a context stack."""

from __future__ import annotations

import enum
import logging
import re
from typing import Any, Iterable, List, Sequence

from pydantic import BaseModel, ConfigDict

from bibtmpl.ast.nodes import Literal, Node, Section, Template, Variable
from bibtmpl.engine.resolver import Scope, loop_bindings, resolve, root_scopes
from bibtmpl.values import is_falsy, stringify

log = logging.getLogger(__name__)

# Characters kept by citekey sanitising
CITEKEY_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


class RenderMode(str, enum.Enum):
    NORMAL = "normal"
    CITEKEY = "citekey"
    ARRAY = "array"


class RenderOptions(BaseModel):
    """Per-call rendering switches.

    ``yaml_array`` is advisory: it tells the renderer the caller will parse
    the output as a JSON array, but the text is returned untouched. When both
    flags are set, citekey sanitising wins.
    """

    model_config = ConfigDict(frozen=True)

    sanitize_for_citekey: bool = False
    yaml_array: bool = False

    @property
    def mode(self) -> RenderMode:
        if self.sanitize_for_citekey:
            return RenderMode.CITEKEY
        if self.yaml_array:
            return RenderMode.ARRAY
        return RenderMode.NORMAL

    @classmethod
    def for_mode(cls, mode: RenderMode | str) -> "RenderOptions":
        mode = RenderMode(mode)
        return cls(
            sanitize_for_citekey=mode is RenderMode.CITEKEY,
            yaml_array=mode is RenderMode.ARRAY,
        )


DEFAULT_OPTIONS = RenderOptions()


def sanitize_citekey(text: str) -> str:
    """Drop every character outside ``[A-Za-z0-9_-]``; case is preserved."""
    return CITEKEY_UNSAFE.sub("", text)


class Renderer:
    """Walks template nodes and produces output text.

    The renderer holds no state between calls; one instance can serve any
    number of concurrent renders.
    """

    def render(
        self,
        template: Template,
        context: Any,
        options: RenderOptions = DEFAULT_OPTIONS,
    ) -> str:
        """Render ``template`` against a normalised context value.

        Args:
            template: Parsed template.
            context: Root of the context (a :data:`bibtmpl.values.Value`).
            options: Render mode switches.

        Returns:
            The rendered text, post-processed for the selected mode.
        """
        output = self.evaluate(template.nodes, root_scopes(context))
        return self.finish(output, options)

    def evaluate(self, nodes: Iterable[Node], scopes: Sequence[Scope]) -> str:
        """Render a node list against ``scopes`` (outermost first)."""
        parts: List[str] = []
        for node in nodes:
            if isinstance(node, Literal):
                parts.append(node.text)
            elif isinstance(node, Variable):
                parts.append(self._variable(node, scopes))
            elif isinstance(node, Section):
                parts.append(self._section(node, scopes))
            else:
                raise TypeError(f"Unknown node type: {type(node).__name__}")
        return "".join(parts)

    def finish(self, output: str, options: RenderOptions) -> str:
        """Apply mode-specific post-processing to the assembled output."""
        mode = options.mode
        if mode is RenderMode.CITEKEY:
            return sanitize_citekey(output)
        if mode is RenderMode.ARRAY:
            log.debug("Array mode: returning %d chars for caller-side parsing", len(output))
        return output

    def _variable(self, node: Variable, scopes: Sequence[Scope]) -> str:
        text = stringify(resolve(node.path, scopes))
        for f in node.filters:
            text = f(text)
        return text

    def _section(self, node: Section, scopes: Sequence[Scope]) -> str:
        value = resolve(node.path, scopes)
        falsy = is_falsy(value)

        if node.negated:
            return self.evaluate(node.body, scopes) if falsy else ""
        if falsy:
            return ""

        if isinstance(value, list):
            length = len(value)
            return "".join(
                self.evaluate(
                    node.body,
                    [*scopes, Scope(value=item, bindings=loop_bindings(index, length))],
                )
                for index, item in enumerate(value)
            )
        if isinstance(value, dict):
            return self.evaluate(node.body, [*scopes, Scope(value=value)])
        return self.evaluate(node.body, scopes)
