"""Implementation of the ``fencesmith languages`` command."""

from __future__ import annotations

import click
from rich import box
from rich.table import Table
import typer

from fencesmith.api.pipeline import HighlightSession
from fencesmith.core.exceptions import FencesmithError
from fencesmith.core.registry import GrammarRegistry

from .._options import (
    ConfigFileOption,
    DebugOption,
    GrammarPackageOption,
    PrecedenceOption,
    VerbosityOption,
)
from ..diagnostics import CliEmitter
from ..state import emit_error, set_cli_state
from ..utils import build_options


def _describe_grammar(grammar: object) -> str:
    name = getattr(grammar, "name", None)
    if isinstance(name, str) and name:
        return name
    alias = getattr(grammar, "alias", None)
    if isinstance(alias, str) and alias:
        return f"pygments:{alias}"
    return type(grammar).__name__


def _build_table(registry: GrammarRegistry) -> Table:
    table = Table(
        title="Available Languages",
        box=box.SQUARE,
        show_edge=True,
        header_style="bold cyan",
    )
    table.add_column("Key", style="magenta")
    table.add_column("Grammar", style="green")

    if not len(registry):
        table.add_row("-", "No grammars registered")
        return table
    for key in registry.languages():
        table.add_row(key, _describe_grammar(registry[key]))
    return table


def languages(
    packages: GrammarPackageOption = None,
    config_file: ConfigFileOption = None,
    precedence: PrecedenceOption = None,
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """List the language keys provided by the selected grammar packages."""
    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    try:
        options = build_options(
            config_file=config_file, packages=packages, precedence=precedence
        )
        session = HighlightSession(options, emitter=CliEmitter(state))
        registry = session.registry_sync()
    except FencesmithError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    state.console.print(_build_table(registry))


__all__ = ["languages"]
