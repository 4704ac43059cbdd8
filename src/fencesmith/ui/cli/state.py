"""Per-invocation CLI state: verbosity, traceback policy and Rich consoles."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
import sys
from typing import TYPE_CHECKING

import click
from rich.text import Text


if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "CLIState",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "render_message",
    "reset_cli_state",
    "set_cli_state",
]


@dataclass(slots=True)
class CLIState:
    """Diagnostics settings shared by the commands of one invocation."""

    verbosity: int = 0
    show_tracebacks: bool = False
    _console: Console | None = field(default=None, init=False, repr=False)
    _err_console: Console | None = field(default=None, init=False, repr=False)

    @property
    def console(self) -> Console:
        """Console bound to the current standard output."""
        from rich.console import Console

        if self._console is None or self._console.file is not sys.stdout:
            self._console = Console(file=sys.stdout)
        return self._console

    @property
    def err_console(self) -> Console:
        """Console bound to the current standard error."""
        from rich.console import Console

        if self._err_console is None or self._err_console.file is not sys.stderr:
            self._err_console = Console(file=sys.stderr, highlight=False)
        return self._err_console


_STATE_VAR: ContextVar[CLIState | None] = ContextVar("fencesmith_cli_state", default=None)


def _state_from_context(ctx: click.Context) -> CLIState | None:
    current: click.Context | None = ctx
    while current is not None:
        if isinstance(current.obj, CLIState):
            return current.obj
        current = current.parent
    return None


def get_cli_state(ctx: click.Context | None = None, *, create: bool = True) -> CLIState:
    """Return the state of the running command, creating it when allowed.

    The state lives on the outermost Click context that carries one; outside a
    command it falls back to a context variable.
    """
    ctx = ctx or click.get_current_context(silent=True)
    if ctx is not None:
        state = _state_from_context(ctx)
        if state is None and create:
            state = CLIState()
            ctx.obj = state
        if state is not None:
            _STATE_VAR.set(state)
            return state

    state = _STATE_VAR.get()
    if state is None:
        if not create:
            raise RuntimeError("CLI state is not initialised for this context.")
        state = CLIState()
        _STATE_VAR.set(state)
    return state


def set_cli_state(
    *,
    ctx: click.Context | None = None,
    verbosity: int | None = None,
    debug: bool | None = None,
) -> CLIState:
    """Apply command-line diagnostics flags and return the state."""
    state = get_cli_state(ctx)
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    return state


def reset_cli_state() -> None:
    """Forget the state kept outside of a Click context."""
    _STATE_VAR.set(None)


def _cause_lines(exc: BaseException) -> list[str]:
    lines: list[str] = []
    seen: set[int] = set()
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"  {type(cause).__name__}: {cause}")
        cause = cause.__cause__ or cause.__context__
    return lines


def render_message(
    level: str,
    message: str,
    *,
    exception: BaseException | None = None,
    state: CLIState | None = None,
) -> None:
    """Print a diagnostic on stderr; standard output is kept for documents."""
    state = state or get_cli_state()

    if level == "info":
        if state.verbosity >= 1:
            state.err_console.print(Text(message, style="dim"))
        return

    style = "red" if level == "error" else "yellow"
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))

    details: list[str] = []
    if exception is not None and state.verbosity >= 1:
        reason = str(exception).strip()
        if reason and reason not in message:
            details.append(reason)
        details.append(f"type: {type(exception).__name__}")
        if state.verbosity >= 2:
            causes = _cause_lines(exception)
            if causes:
                details.append("caused by:")
                details.extend(causes)
    if details:
        text.append("\n" + "\n".join(details), style=style)

    state.err_console.print(text)


def emit_warning(
    message: str,
    *,
    exception: BaseException | None = None,
    state: CLIState | None = None,
) -> None:
    """Report a warning on stderr."""
    render_message("warning", message, exception=exception, state=state)


def emit_error(
    message: str,
    *,
    exception: BaseException | None = None,
    state: CLIState | None = None,
) -> None:
    """Report an error on stderr."""
    render_message("error", message, exception=exception, state=state)


def debug_enabled() -> bool:
    """Return whether full tracebacks should be displayed."""
    try:
        return get_cli_state(create=False).show_tracebacks
    except RuntimeError:
        return False
