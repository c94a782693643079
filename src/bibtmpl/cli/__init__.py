"""Command-line playground for bibtmpl templates."""

from .main import main, typer_app

__all__ = ["main", "typer_app"]
