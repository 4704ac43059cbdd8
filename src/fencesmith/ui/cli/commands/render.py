"""Implementation of the ``fencesmith render`` command."""

from __future__ import annotations

import click
import typer

from fencesmith.adapters.markdown import MarkdownConversionError
from fencesmith.api.pipeline import HighlightSession
from fencesmith.core.exceptions import FencesmithError

from .._options import (
    ClassStyleOption,
    ClassWhitelistOption,
    ConfigFileOption,
    DebugOption,
    GrammarPackageOption,
    InputPathArgument,
    OutputPathOption,
    ParserOption,
    PrecedenceOption,
    VerbosityOption,
)
from ..diagnostics import CliEmitter
from ..state import emit_error, set_cli_state
from ..utils import build_options, is_markdown


def render(
    input_path: InputPathArgument,
    output: OutputPathOption = None,
    packages: GrammarPackageOption = None,
    whitelist: ClassWhitelistOption = None,
    config_file: ConfigFileOption = None,
    precedence: PrecedenceOption = None,
    class_style: ClassStyleOption = None,
    parser: ParserOption = "html.parser",
    verbose: VerbosityOption = 0,
    debug: DebugOption = False,
) -> None:
    """Highlight the fenced code blocks of a Markdown or HTML document."""
    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)

    try:
        options = build_options(
            config_file=config_file,
            packages=packages,
            whitelist=whitelist,
            precedence=precedence,
            class_style=class_style,
        )
        session = HighlightSession(options, emitter=CliEmitter(state), parser=parser)
    except FencesmithError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    try:
        source = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        emit_error(f"Unable to read '{input_path}': {exc}", exception=exc)
        raise typer.Exit(code=1) from exc

    try:
        if is_markdown(input_path):
            html = session.highlight_markdown_sync(source)
        else:
            html = session.highlight_html_sync(source)
    except (FencesmithError, MarkdownConversionError) as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    if output is None:
        typer.echo(html)
        return

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(html, encoding="utf-8")
    except OSError as exc:
        emit_error(f"Unable to write '{output}': {exc}", exception=exc)
        raise typer.Exit(code=1) from exc
    if state.verbosity >= 1:
        state.err_console.print(f"[cyan]Highlighted HTML written to[/] {output}")


__all__ = ["render"]
