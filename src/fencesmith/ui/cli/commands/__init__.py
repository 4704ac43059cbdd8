"""CLI command implementations exposed via `fencesmith.ui.cli`."""

from __future__ import annotations

from .languages import languages
from .render import render


__all__ = ["languages", "render"]
