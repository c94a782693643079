"""Configuration for the template engine.

Settings come from an optional ``bibtmpl.yaml``::

    cache_size: 256        # parsed templates kept in memory, 0 = unbounded
    default_mode: normal   # CLI mode when -m is not given: normal | citekey | array
    stop_words: [a, an, the]

and may be overridden by ``BIBTMPL_CACHE_SIZE`` / ``BIBTMPL_DEFAULT_MODE``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field

from bibtmpl.cache import DEFAULT_CACHE_SIZE, TemplateCache
from bibtmpl.ast.parser import Parser
from bibtmpl.engine.filters import DEFAULT_REGISTRY, FilterRegistry, build_default_registry
from bibtmpl.engine.renderer import RenderMode

SETTINGS_FILE = "bibtmpl.yaml"
ENV_PREFIX = "BIBTMPL_"


class EngineSettings(BaseModel):
    """Engine-wide settings."""

    cache_size: int = Field(
        default=DEFAULT_CACHE_SIZE, ge=0, description="Max parsed templates kept, 0 = unbounded"
    )
    default_mode: RenderMode = Field(
        default=RenderMode.NORMAL, description="CLI render mode when -m is not given"
    )
    stop_words: Optional[list[str]] = Field(
        default=None, description="Stop words for titleword/shorttitle (None = built-in list)"
    )

    @classmethod
    def load(cls, path: Path) -> "EngineSettings":
        """Load settings from a YAML file; a missing file gives defaults."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return cls.model_validate(data)

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """Return a copy with ``BIBTMPL_*`` environment overrides applied."""
        env = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for name in ("cache_size", "default_mode"):
            value = env.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                overrides[name] = value
        if not overrides:
            return self
        return self.model_validate({**self.model_dump(), **overrides})

    def build_registry(self) -> FilterRegistry:
        if self.stop_words is None:
            return DEFAULT_REGISTRY
        return build_default_registry(self.stop_words).freeze()

    def build_cache(self) -> TemplateCache:
        return TemplateCache(self.cache_size, Parser(self.build_registry()))


def find_settings_file(start: Optional[Path] = None) -> Optional[Path]:
    """Find bibtmpl.yaml in ``start`` (default: cwd) or its parents."""
    cwd = start or Path.cwd()
    for parent in [cwd] + list(cwd.parents):
        candidate = parent / SETTINGS_FILE
        if candidate.exists():
            return candidate
    return None


def load_settings(path: Optional[Path] = None) -> EngineSettings:
    """Load settings from ``path`` (or the nearest bibtmpl.yaml) plus env overrides."""
    path = path or find_settings_file()
    settings = EngineSettings.load(path) if path is not None else EngineSettings()
    return settings.with_env()
