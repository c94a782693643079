"""Template evaluation: path resolution, filters and rendering."""

from bibtmpl.engine.filters import DEFAULT_REGISTRY, FilterRegistry, build_default_registry
from bibtmpl.engine.renderer import RenderMode, RenderOptions, Renderer, sanitize_citekey
from bibtmpl.engine.resolver import Scope, lookup, resolve

__all__ = [
    "DEFAULT_REGISTRY",
    "FilterRegistry",
    "RenderMode",
    "RenderOptions",
    "Renderer",
    "Scope",
    "build_default_registry",
    "lookup",
    "resolve",
    "sanitize_citekey",
]
