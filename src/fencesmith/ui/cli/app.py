"""Typer application wiring for the fencesmith CLI."""

from __future__ import annotations

import typer

from fencesmith.core.exceptions import exception_hint
from fencesmith.version import get_version

from .commands import languages, render
from .state import debug_enabled, emit_error, get_cli_state


app = typer.Typer(
    help="Highlight fenced code blocks with tree-sitter grammars.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(get_version())
        raise typer.Exit()


@app.callback()
def _main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the fencesmith version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Highlight fenced code blocks with tree-sitter grammars."""


app.command()(render)
app.command()(languages)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - defensive catch-all
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(exception_hint(exc) or str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
