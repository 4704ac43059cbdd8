"""Handlers applied by the HTML document transformer."""

from __future__ import annotations

from . import code


__all__ = ["code"]
