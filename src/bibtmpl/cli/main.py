"""bibtmpl CLI Main Entry Point

A playground for citation templates: render a template against sample
metadata in any of the modes the note generators use.

Usage:
    bibtmpl render '{{title|titleword}}' -d item.yaml      # normal mode
    bibtmpl render '{{author}}{{year}}' -d item.yaml -m citekey
    bibtmpl render -f keywords.tmpl -d item.yaml -m field  # frontmatter field
    bibtmpl check '{{#authors}}{{.}}{{/authors}}'          # syntax check only
    bibtmpl filters                                        # list filters
    bibtmpl --version
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import msgspec
import typer
from rich.table import Table

import bibtmpl
from bibtmpl._version import __version__
from bibtmpl.ast.nodes import Section, Variable
from bibtmpl.config import load_settings
from bibtmpl.exceptions import BibtmplError
from bibtmpl.fields import render_field

from .utils import console, exit_with_error, load_context, read_template, setup_logging

log = logging.getLogger(__name__)

MODES = ("normal", "citekey", "array", "field")

typer_app = typer.Typer(
    help="Render and check citation templates.", no_args_is_help=True
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bibtmpl {__version__}")
        raise typer.Exit()


@typer_app.callback()
def cli(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to bibtmpl.yaml settings."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Citation template playground."""
    setup_logging(verbose)
    if config is not None and not config.exists():
        exit_with_error(f"Settings file not found: {config}")
    try:
        bibtmpl.configure(load_settings(config))
    except ValueError as exc:
        exit_with_error(f"Invalid settings: {exc}")


@typer_app.command("render")
def render_command(
    template: Optional[str] = typer.Argument(
        None, help="Template text, or '-' to read it from stdin."
    ),
    template_file: Optional[Path] = typer.Option(
        None, "-f", "--template-file", help="Read the template from a file."
    ),
    data: Optional[Path] = typer.Option(
        None, "-d", "--data", help="YAML or JSON file with the context."
    ),
    mode: Optional[str] = typer.Option(
        None, "-m", "--mode", help="normal, citekey, array or field."
    ),
) -> None:
    """Render TEMPLATE against a context file."""
    text = read_template(template, template_file)
    context = load_context(data)
    engine = bibtmpl.get_engine()
    selected = mode or engine.settings.default_mode.value
    if selected not in MODES:
        exit_with_error(f"Unknown mode '{selected}' (expected one of: {', '.join(MODES)})")

    try:
        if selected == "field":
            value = render_field(text, context, engine)
            typer.echo(msgspec.json.encode(value).decode("utf-8"))
            return
        options = bibtmpl.RenderOptions.for_mode(selected)
        output = engine.render(text, context, options)
    except BibtmplError as exc:
        exit_with_error(exc.message, exc.exit_code)
    except TypeError as exc:
        exit_with_error(f"Unsupported context data: {exc}")

    log.info("Rendered %d characters in %s mode", len(output), selected)
    typer.echo(output, nl=not output.endswith("\n"))


@typer_app.command("check")
def check_command(
    templates: List[str] = typer.Argument(..., help="Templates to check."),
) -> None:
    """Parse templates without rendering and report what they reference."""
    failed = 0
    for text in templates:
        try:
            parsed = bibtmpl.parse(text)
        except BibtmplError as exc:
            failed += 1
            console.print(f"[red]✗[/red] {text!r}: {exc.message}")
            continue
        nodes = list(parsed.walk())
        sections = sum(isinstance(n, Section) for n in nodes)
        variables = sum(isinstance(n, Variable) for n in nodes)
        console.print(
            f"[green]✓[/green] {text!r}: {variables} variable(s), {sections} section(s)"
            + (f" - paths: {', '.join(parsed.paths)}" if parsed.paths else "")
        )
    if failed:
        raise typer.Exit(code=1)


@typer_app.command("filters")
def filters_command() -> None:
    """List available filters."""
    registry = bibtmpl.get_engine().cache.parser.registry
    table = Table()
    table.add_column("Filter", style="cyan")
    table.add_column("Description")
    for spec in registry:
        table.add_row(spec.usage, spec.description)
    console.print(table)


def main() -> None:
    """Entry point for the ``bibtmpl`` console script."""
    typer_app()


if __name__ == "__main__":
    main()
