"""TemplateEngine - parse (through the cache) and render in one call."""

from __future__ import annotations

import logging
from typing import Any, Optional

from bibtmpl.ast.nodes import Template
from bibtmpl.config import EngineSettings
from bibtmpl.engine.renderer import RenderOptions, Renderer
from bibtmpl.engine.resolver import lookup as _lookup
from bibtmpl.engine.resolver import root_scopes
from bibtmpl.values import to_value

log = logging.getLogger(__name__)


class TemplateEngine:
    """Bundles settings, the parse cache and a renderer.

    Safe to share between threads: the only mutable state is the cache,
    which locks internally.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()
        self.cache = self.settings.build_cache()
        self.renderer = Renderer()

    def parse(self, template: str) -> Template:
        """Parse ``template``, reusing a cached tree for identical text."""
        return self.cache.get(template)

    def render(
        self,
        template: str,
        context: Any = None,
        options: Optional[RenderOptions] = None,
        *,
        sanitize_for_citekey: bool = False,
        yaml_array: bool = False,
    ) -> str:
        """Render ``template`` against ``context``.

        ``options`` takes precedence over the keyword flags, which are a
        shorthand for building a :class:`RenderOptions`. Without either the
        render is in normal mode; ``settings.default_mode`` only applies to
        the CLI.

        Raises:
            TemplateSyntaxError: the template is malformed.
            TypeError: the context holds values with no plain representation.
        """
        if options is None:
            options = RenderOptions(
                sanitize_for_citekey=sanitize_for_citekey, yaml_array=yaml_array
            )
        parsed = self.parse(template)
        value = to_value({} if context is None else context)
        log.debug("Rendering in %s mode", options.mode.value)
        return self.renderer.render(parsed, value, options)

    def lookup(self, path: str, context: Any) -> Any:
        """Resolve a dotted path against ``context``; ``None`` when absent."""
        return _lookup(path, root_scopes(to_value(context)))

    def clear_cache(self) -> None:
        self.cache.clear()
