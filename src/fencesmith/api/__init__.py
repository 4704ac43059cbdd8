"""High-level API for highlighting documents."""

from __future__ import annotations

from .pipeline import HighlightSession, highlight_html, highlight_markdown, run_sync


__all__ = ["HighlightSession", "highlight_html", "highlight_markdown", "run_sync"]
