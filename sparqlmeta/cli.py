# -*- coding: utf-8 -*-
"""sparqlmeta Command Line Interface - SPARQL query metadata extraction."""

import logging
import sys
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .analysis import BindingError
from .api import QueryAnalyzer
from .compiler import ParseError
from .config import AnalyzerConfig, get_config, init_config

console = Console()

app = typer.Typer(
    name="sparqlmeta",
    help="Extract outputs, VALUES parameters and placeholders from SPARQL queries",
    add_completion=False,
)

QUERY_ARGUMENT = typer.Argument(..., help="Query file, or '-' to read from stdin")
JSON_OPTION = typer.Option(False, "--json", help="Print JSON instead of a table")


# ============================================================================
# Helpers
# ============================================================================

def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _analyzer() -> QueryAnalyzer:
    return QueryAnalyzer(get_config())


def _print_json(data):
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())


def _fail(message: str):
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


# ============================================================================
# MAIN COMMANDS
# ============================================================================

@app.callback()
def main_callback(
    config_file: Optional[str] = typer.Option(None, "--config", help="JSON configuration file"),
    log_level: Optional[str] = typer.Option(None, "-l", "--loglevel", help="Logging level"),
):
    """sparqlmeta CLI - SPARQL query metadata extraction."""
    try:
        config: AnalyzerConfig = init_config(config_file) if config_file else get_config()
    except (OSError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")

    level = (log_level or config.operational.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@app.command()
def version():
    """Show sparqlmeta version."""
    from . import __version__
    console.print(f"[bold blue]sparqlmeta[/bold blue] version [bold green]{__version__}[/bold green]")


@app.command()
def parse(query: str = QUERY_ARGUMENT):
    """Parse a query and print a summary of its structure."""
    try:
        ast = _analyzer().parse(_read_text(query))
    except (ParseError, OSError) as e:
        _fail(str(e))

    console.print(f"[bold green]✓[/bold green] {ast}")
    prefixes = ast.prologue.prefix_map()
    if prefixes:
        table = Table(title="Prefixes")
        table.add_column("Prefix", style="cyan")
        table.add_column("IRI")
        for prefix, iri in prefixes.items():
            table.add_row(f"{prefix}:", iri)
        console.print(table)


@app.command()
def outputs(query: str = QUERY_ARGUMENT, as_json: bool = JSON_OPTION):
    """List the output columns of a SELECT query."""
    try:
        names = _analyzer().outputs(_read_text(query))
    except (ParseError, OSError) as e:
        _fail(str(e))

    if as_json:
        _print_json(names)
        return

    table = Table(title="Query Outputs")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Output", style="cyan")
    for position, name in enumerate(names, 1):
        table.add_row(str(position), name)
    console.print(table)


@app.command()
def variables(query: str = QUERY_ARGUMENT, as_json: bool = JSON_OPTION):
    """List the variable groups declared by VALUES blocks."""
    try:
        groups = _analyzer().variables(_read_text(query))
    except (ParseError, OSError) as e:
        _fail(str(e))

    if as_json:
        _print_json([group.to_list() for group in groups])
        return

    table = Table(title="VALUES Variable Groups")
    table.add_column("Group", justify="right", style="dim")
    table.add_column("Variables", style="cyan")
    for position, group in enumerate(groups, 1):
        table.add_row(str(position), " ".join(f"?{name}" for name in group))
    console.print(table)


@app.command()
def parameters(query: str = QUERY_ARGUMENT, as_json: bool = JSON_OPTION):
    """List parameter slots: UNDEF VALUES rows and LIMIT/OFFSET placeholders."""
    try:
        detected = _analyzer().parameters(_read_text(query))
    except (ParseError, OSError) as e:
        _fail(str(e))

    if as_json:
        _print_json(detected.to_dict())
        return

    table = Table(title="Query Parameters")
    table.add_column("Kind", style="cyan")
    table.add_column("Parameter")
    for group in detected.values_parameters:
        table.add_row("VALUES", " ".join(f"?{name}" for name in group))
    for placeholder in detected.limit_parameters:
        table.add_row("LIMIT", placeholder)
    for placeholder in detected.offset_parameters:
        table.add_row("OFFSET", placeholder)
    console.print(table)


@app.command()
def bind(
    query: str = QUERY_ARGUMENT,
    bindings_file: str = typer.Option(..., "-b", "--bindings",
                                      help="SPARQL JSON results or argument set file"),
):
    """Fill UNDEF VALUES rows with bindings and print the rewritten query."""
    try:
        text = _read_text(query)
        bindings = orjson.loads(Path(bindings_file).read_bytes())
        rewritten = _analyzer().bind(text, bindings)
    except orjson.JSONDecodeError as e:
        _fail(f"Invalid bindings JSON: {e}")
    except (ParseError, BindingError, OSError) as e:
        _fail(str(e))

    typer.echo(rewritten)


# ============================================================================
# ENTRY POINTS FOR INSTALLATION
# ============================================================================

def main():
    """Main CLI entry point - equivalent to 'sparqlmeta' command."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted by user[/dim]")
        sys.exit(1)


if __name__ == "__main__":
    main()
