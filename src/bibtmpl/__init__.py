"""bibtmpl - templates for bibliographic notes.

Renders Mustache-flavoured templates (variables, sections, list iteration
with loop metadata, dotted paths and pipe filters) against citation
metadata, for filenames, citekeys, note bodies and frontmatter fields.

Example:
    >>> render("{{#authors}}{{.}}{{^@last}}, {{/@last}}{{/authors}}",
    ...        {"authors": ["Smith", "Jones"]})
    'Smith, Jones'
"""

from __future__ import annotations

from typing import Any, Optional

from bibtmpl._version import __version__
from bibtmpl.ast.nodes import Template
from bibtmpl.config import EngineSettings, load_settings
from bibtmpl.core import TemplateEngine
from bibtmpl.engine.renderer import RenderMode, RenderOptions
from bibtmpl.exceptions import (
    BibtmplError,
    CitekeyError,
    FilterArgumentError,
    SectionMismatchError,
    TemplateSyntaxError,
    UnexpectedCloseError,
    UnknownFilterError,
    UnterminatedSectionError,
)

_default_engine = TemplateEngine()


def get_engine() -> TemplateEngine:
    """Return the engine used by the module-level helpers."""
    return _default_engine


def configure(settings: Optional[EngineSettings] = None) -> TemplateEngine:
    """Replace the default engine (and its cache) using ``settings``."""
    global _default_engine
    _default_engine = TemplateEngine(settings)
    return _default_engine


def parse(template: str) -> Template:
    """Parse ``template`` (cached). Raises :class:`TemplateSyntaxError`."""
    return _default_engine.parse(template)


def render(
    template: str,
    context: Any = None,
    options: Optional[RenderOptions] = None,
    *,
    sanitize_for_citekey: bool = False,
    yaml_array: bool = False,
) -> str:
    """Render ``template`` against ``context``. See :meth:`TemplateEngine.render`."""
    return _default_engine.render(
        template,
        context,
        options,
        sanitize_for_citekey=sanitize_for_citekey,
        yaml_array=yaml_array,
    )


def lookup(path: str, context: Any) -> Any:
    """Resolve a dotted path against ``context``; ``None`` when absent."""
    return _default_engine.lookup(path, context)


def clear_cache() -> None:
    _default_engine.clear_cache()


__all__ = [
    "BibtmplError",
    "CitekeyError",
    "EngineSettings",
    "FilterArgumentError",
    "RenderMode",
    "RenderOptions",
    "SectionMismatchError",
    "Template",
    "TemplateEngine",
    "TemplateSyntaxError",
    "UnexpectedCloseError",
    "UnknownFilterError",
    "UnterminatedSectionError",
    "__version__",
    "clear_cache",
    "configure",
    "get_engine",
    "load_settings",
    "lookup",
    "parse",
    "render",
]
