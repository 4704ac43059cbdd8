"""HTML document transformer built on the rule engine."""

from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Any

from bs4 import BeautifulSoup, FeatureNotFound

from fencesmith.core.config import HighlightConfig
from fencesmith.core.context import HighlightContext
from fencesmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from fencesmith.core.registry import GrammarRegistry
from fencesmith.core.rules import RenderEngine


logger = logging.getLogger(__name__)


class HtmlHighlighter:
    """Highlight fenced code blocks inside HTML documents."""

    def __init__(self, config: HighlightConfig, *, parser: str = "html.parser") -> None:
        self.config = config
        self.parser_backend = parser
        self.engine = RenderEngine()
        self._register_builtin_handlers()

    def _register_builtin_handlers(self) -> None:
        from .handlers import code as code_handlers

        self.engine.collect_from(code_handlers)

    def register(self, handler: Any) -> None:
        """Register additional handlers or modules exposing decorated handlers."""
        if getattr(handler, "__render_rule__", None) is not None:
            self.engine.register(handler)
            return
        self.engine.collect_from(handler)

    def parse(self, html: str) -> BeautifulSoup:
        """Parse an HTML string with the configured BeautifulSoup backend."""
        try:
            return BeautifulSoup(html, self.parser_backend)
        except FeatureNotFound:
            if self.parser_backend == "html.parser":
                raise
            logger.warning(
                "HTML parser '%s' is unavailable, falling back to html.parser",
                self.parser_backend,
            )
            self.parser_backend = "html.parser"
            return BeautifulSoup(html, "html.parser")

    def transform(
        self,
        document: BeautifulSoup,
        registry: GrammarRegistry,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> HighlightContext:
        """Highlight every code block of ``document`` in place."""
        context = HighlightContext(
            config=self.config,
            registry=registry,
            document=document,
            emitter=emitter or NullEmitter(),
        )
        self.engine.run(document, context)
        return context

    def render(
        self,
        html: str,
        registry: GrammarRegistry,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> str:
        """Return ``html`` with its code blocks highlighted."""
        document = self.parse(html)
        self.transform(document, registry, emitter=emitter)
        return str(document)

    def describe_registered_rules(self) -> list[dict[str, object]]:
        """Return detailed metadata about registered rules."""
        return self.engine.registry.describe()

    def iter_registered_rules(self) -> Iterable[str]:
        """Expose currently registered rule names for debugging/reporting."""
        for entry in self.describe_registered_rules():
            yield str(entry["name"])


__all__ = ["HtmlHighlighter"]
