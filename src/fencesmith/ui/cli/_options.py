"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
GRAMMARS_PANEL = "Grammars"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

DEFAULT_GRAMMAR_PACKAGE = "fencesmith.grammars"

InputPathArgument = Annotated[
    Path,
    typer.Argument(
        metavar="INPUT",
        help="Markdown (.md, .markdown) or HTML document whose code blocks are highlighted.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputPathOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Write the highlighted HTML to this file instead of standard output.",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

GrammarPackageOption = Annotated[
    list[str] | None,
    typer.Option(
        "--package",
        "-p",
        help=(
            "Grammar package to load ('module' or 'module:attribute'). "
            f"Repeat to merge several packages. Defaults to {DEFAULT_GRAMMAR_PACKAGE}."
        ),
        rich_help_panel=GRAMMARS_PANEL,
    ),
]

ClassWhitelistOption = Annotated[
    list[str] | None,
    typer.Option(
        "--whitelist",
        "-w",
        help="Only keep these highlight classes. Repeat or separate with commas.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

ConfigFileOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        help="YAML file providing highlighting options.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=GRAMMARS_PANEL,
    ),
]

PrecedenceOption = Annotated[
    str | None,
    typer.Option(
        "--precedence",
        help="Which grammar package wins when several define a language: 'last' or 'first'.",
        rich_help_panel=GRAMMARS_PANEL,
    ),
]

ClassStyleOption = Annotated[
    str | None,
    typer.Option(
        "--class-style",
        help="Derive classes from scope segments ('segments') or joined scopes ('joined').",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

ParserOption = Annotated[
    str,
    typer.Option(
        "--parser",
        help="BeautifulSoup parser backend used for the HTML document.",
        rich_help_panel=INPUTS_PANEL,
    ),
]

VerbosityOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "DEFAULT_GRAMMAR_PACKAGE",
    "ClassStyleOption",
    "ClassWhitelistOption",
    "ConfigFileOption",
    "DebugOption",
    "GrammarPackageOption",
    "InputPathArgument",
    "OutputPathOption",
    "ParserOption",
    "PrecedenceOption",
    "VerbosityOption",
]
