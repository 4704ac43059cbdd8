"""Markdown conversion utilities producing the HTML host document."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import re
from threading import Lock
from typing import Any

import markdown
import yaml


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MarkdownConversionError",
    "MarkdownDocument",
    "normalize_markdown_extensions",
    "render_markdown",
    "resolve_markdown_extensions",
    "split_front_matter",
]


DEFAULT_MARKDOWN_EXTENSIONS = [
    "abbr",
    "attr_list",
    "def_list",
    "fenced_code",
    "footnotes",
    "md_in_html",
    "tables",
]

# Highlighting extensions would pre-render code blocks with Pygments markup.
CONFLICTING_EXTENSIONS = frozenset({"codehilite", "markdown.extensions.codehilite"})


class MarkdownConversionError(Exception):
    """Raised when Markdown cannot be converted into HTML."""


@dataclass(slots=True)
class MarkdownDocument:
    """Result of converting Markdown into HTML."""

    html: str
    front_matter: dict[str, Any]


class _MarkdownCacheEntry:
    __slots__ = ("lock", "processor")

    def __init__(self, processor: Any) -> None:
        self.processor = processor
        self.lock = Lock()


_MARKDOWN_CACHE: dict[tuple[str, ...], _MarkdownCacheEntry] = {}
_MARKDOWN_CACHE_GUARD = Lock()


def normalize_markdown_extensions(values: Iterable[str] | str | None) -> list[str]:
    """Normalise extension names from CLI-friendly strings into a flat list."""
    if values is None:
        return []

    candidates: Iterable[str] = [values] if isinstance(values, str) else values
    normalized: list[str] = []
    for value in candidates:
        if not isinstance(value, str):
            continue
        chunks = re.split(r"[,\s\x00]+", value)
        normalized.extend(chunk for chunk in chunks if chunk)
    return normalized


def resolve_markdown_extensions(
    requested: Iterable[str] | str | None,
    disabled: Iterable[str] | str | None = None,
) -> list[str]:
    """Return the active Markdown extension list after applying overrides."""
    disabled_normalized = {value.lower() for value in normalize_markdown_extensions(disabled)}
    seen: set[str] = set()
    result: list[str] = []
    for value in DEFAULT_MARKDOWN_EXTENSIONS + normalize_markdown_extensions(requested):
        key = value.lower()
        if key in seen or key in disabled_normalized or key in CONFLICTING_EXTENSIONS:
            continue
        seen.add(key)
        result.append(value)
    return result


def render_markdown(source: str, extensions: Sequence[str] | None = None) -> MarkdownDocument:
    """Convert Markdown source into HTML while collecting front matter."""
    metadata, body = split_front_matter(source)
    active_extensions = tuple(
        extensions if extensions is not None else DEFAULT_MARKDOWN_EXTENSIONS
    )
    entry = _resolve_markdown_entry(active_extensions)

    try:
        with entry.lock:
            entry.processor.reset()
            html = entry.processor.convert(body)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc

    return MarkdownDocument(html=html, front_matter=metadata)


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from Markdown content, returning metadata and body."""
    candidate = source.lstrip("\ufeff")
    lines = candidate.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, source

    front_matter_lines: list[str] = []
    closing_index: int | None = None
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() in {"---", "..."}:
            closing_index = idx
            break
        front_matter_lines.append(line)

    if closing_index is None:
        return {}, source

    try:
        metadata = yaml.safe_load("\n".join(front_matter_lines)) or {}
    except yaml.YAMLError:
        return {}, source

    if not isinstance(metadata, dict):
        metadata = {}

    body = "\n".join(lines[closing_index + 1 :])
    if source.endswith("\n"):
        body += "\n"
    return metadata, body


def _resolve_markdown_entry(extensions: tuple[str, ...]) -> _MarkdownCacheEntry:
    entry = _MARKDOWN_CACHE.get(extensions)
    if entry is not None:
        return entry
    with _MARKDOWN_CACHE_GUARD:
        entry = _MARKDOWN_CACHE.get(extensions)
        if entry is None:
            try:
                processor = markdown.Markdown(extensions=list(extensions))
            except Exception as exc:  # pragma: no cover - library-controlled
                raise MarkdownConversionError(
                    f"Failed to initialize Markdown processor: {exc}"
                ) from exc
            entry = _MarkdownCacheEntry(processor)
            _MARKDOWN_CACHE[extensions] = entry
    return entry
