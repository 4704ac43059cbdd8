"""Public CLI exports for fencesmith."""

from __future__ import annotations

from .app import app, main
from .commands import languages, render
from .state import debug_enabled, emit_error, emit_warning, get_cli_state


__all__ = [
    "app",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "languages",
    "main",
    "render",
]
