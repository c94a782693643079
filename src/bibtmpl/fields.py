"""Structured (frontmatter) field rendering.

A field template that looks like a JSON array is rendered in array mode and
the output decoded; the engine never inserts brackets, commas or quotes, so
the template author writes them, e.g.::

    [{{#authors}}{{^@first}},{{/@first}}"{{.}}"{{/authors}}]
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import msgspec

from bibtmpl.core import TemplateEngine

log = logging.getLogger(__name__)


def is_array_template(template: str) -> bool:
    stripped = template.strip()
    return stripped.startswith("[") and stripped.endswith("]")


def _looks_structured(text: str) -> bool:
    return (text.startswith("[") and text.endswith("]")) or (
        text.startswith("{") and text.endswith("}")
    )


def interpret_field_value(rendered: str, array_template: bool = False) -> Any:
    """Turn rendered field text into the value stored in frontmatter.

    - ``[...]`` / ``{...}`` text is decoded as JSON, falling back to the raw
      string when it is not valid JSON.
    - Blank output gives ``[]`` for array templates and ``None`` (omit the
      field) otherwise.
    - Any other text is returned unchanged.
    """
    text = rendered.strip()
    if _looks_structured(text):
        try:
            return msgspec.json.decode(text)
        except msgspec.DecodeError:
            log.debug("Field output is not valid JSON, keeping it as text")
            return rendered
    if not text:
        return [] if array_template else None
    return rendered


def render_field(
    template: str, context: Any, engine: Optional[TemplateEngine] = None
) -> Any:
    """Render a frontmatter field template and interpret its output."""
    if engine is None:
        from bibtmpl import get_engine

        engine = get_engine()
    array_template = is_array_template(template)
    rendered = engine.render(template, context, yaml_array=array_template)
    return interpret_field_value(rendered, array_template)
