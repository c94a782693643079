"""Shared utilities for CLI commands"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the bibtmpl CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (BIBTMPL_DEBUG=1): DEBUG level - cache hits, parse results, render modes
    """
    debug = bool(os.environ.get("BIBTMPL_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose or debug,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("bibtmpl")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)


def load_context(path: Optional[Path]) -> Any:
    """Load a YAML or JSON context file; no path gives an empty context."""
    if path is None:
        return {}
    if not path.exists():
        exit_with_error(f"Context file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            exit_with_error(f"Could not parse {path}: {exc}")

    return {} if data is None else data


def read_template(template: Optional[str], template_file: Optional[Path]) -> str:
    """Return the template text from the argument, a file, or stdin (``-``)."""
    if template_file is not None:
        if not template_file.exists():
            exit_with_error(f"Template file not found: {template_file}")
        return template_file.read_text(encoding="utf-8")
    if template == "-":
        return sys.stdin.read()
    if template is None:
        exit_with_error("No template given (pass TEMPLATE, '-' or --template-file)")
    return template
