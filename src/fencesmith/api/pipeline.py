"""Processing-run façade over the registry initializer and the transformer.

Architecture
: `HighlightSession` models one processing run. Options are validated when
  the session is created, before any asynchronous work, so configuration
  mistakes surface immediately. The session owns a single
  :class:`~fencesmith.core.initializer.RegistryInitializer`; every document
  transformed through it awaits the same registry.
: Document transformation itself is synchronous. Each code block is
  highlighted completely before its element is touched, so an interrupted run
  never leaves a half-written block behind.

Usage Example
:
    >>> from fencesmith.api.pipeline import HighlightSession
    >>> session = HighlightSession({"grammar_packages": ["fencesmith.grammars"]})
    >>> html = session.highlight_markdown_sync("```js\\nlet x = 1;\\n```")
    >>> 'class="tree-sitter language-js"' in html
    True
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from fencesmith.adapters.html import HtmlHighlighter
from fencesmith.adapters.markdown import render_markdown, resolve_markdown_extensions
from fencesmith.core.config import HighlightConfig, validate_config
from fencesmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from fencesmith.core.initializer import PackageLoader, RegistryInitializer


if TYPE_CHECKING:  # pragma: no cover - type checking only
    from bs4 import BeautifulSoup

    from fencesmith.core.context import HighlightContext
    from fencesmith.core.registry import GrammarRegistry


__all__ = [
    "HighlightSession",
    "highlight_html",
    "highlight_markdown",
    "run_sync",
]


T = TypeVar("T")


def run_sync(awaitable: Awaitable[T]) -> T:
    """Drive ``awaitable`` to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise RuntimeError("run_sync() cannot be used while an event loop is running")

    async def _runner() -> T:
        return await awaitable

    return asyncio.run(_runner())


class HighlightSession:
    """Highlight code blocks across the documents of one processing run."""

    def __init__(
        self,
        options: HighlightConfig | Mapping[str, Any] | None,
        *,
        loader: PackageLoader | None = None,
        emitter: DiagnosticEmitter | None = None,
        parser: str = "html.parser",
        markdown_extensions: Sequence[str] | None = None,
    ) -> None:
        self.config = validate_config(options)
        self.emitter = emitter or NullEmitter()
        self.initializer = RegistryInitializer(self.config, loader=loader, emitter=self.emitter)
        self.highlighter = HtmlHighlighter(self.config, parser=parser)
        self.markdown_extensions = resolve_markdown_extensions(markdown_extensions)

    async def registry(self) -> GrammarRegistry:
        """Return the grammar registry shared by this run."""
        return await self.initializer.get()

    async def transform(self, document: BeautifulSoup) -> HighlightContext:
        """Highlight the code blocks of a parsed document in place."""
        registry = await self.registry()
        return self.highlighter.transform(document, registry, emitter=self.emitter)

    async def highlight_html(self, html: str) -> str:
        """Return ``html`` with its fenced code blocks highlighted."""
        document = self.highlighter.parse(html)
        await self.transform(document)
        return str(document)

    async def highlight_markdown(self, source: str) -> str:
        """Render Markdown to HTML and highlight its fenced code blocks."""
        rendered = render_markdown(source, self.markdown_extensions)
        return await self.highlight_html(rendered.html)

    def highlight_html_sync(self, html: str) -> str:
        """Synchronous variant of :meth:`highlight_html`."""
        return run_sync(self.highlight_html(html))

    def highlight_markdown_sync(self, source: str) -> str:
        """Synchronous variant of :meth:`highlight_markdown`."""
        return run_sync(self.highlight_markdown(source))

    def registry_sync(self) -> GrammarRegistry:
        """Synchronous variant of :meth:`registry`."""
        return run_sync(self.registry())

    def cancel(self) -> None:
        """Abandon in-flight grammar package loads."""
        self.initializer.cancel()


def highlight_html(
    html: str,
    options: HighlightConfig | Mapping[str, Any] | None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Highlight ``html`` using a one-shot session."""
    return HighlightSession(options, emitter=emitter).highlight_html_sync(html)


def highlight_markdown(
    source: str,
    options: HighlightConfig | Mapping[str, Any] | None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Render and highlight Markdown using a one-shot session."""
    return HighlightSession(options, emitter=emitter).highlight_markdown_sync(source)
