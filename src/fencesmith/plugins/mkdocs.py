"""MkDocs plugin highlighting fenced code blocks with tree-sitter grammars.

Enable it in ``mkdocs.yml``::

    plugins:
      - fencesmith:
          grammar_packages:
            - fencesmith.grammars
          class_whitelist: [keyword, string, comment]

One grammar registry is built per site build and shared by every page.
"""

from __future__ import annotations

import logging
from typing import Any

from mkdocs.config import config_options
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin
from mkdocs.structure.files import Files
from mkdocs.structure.pages import Page

from fencesmith.api.pipeline import HighlightSession
from fencesmith.core.diagnostics import LoggingEmitter
from fencesmith.core.exceptions import ConfigurationError, FencesmithError


log = logging.getLogger("mkdocs.plugins.fencesmith")


class FencesmithPlugin(BasePlugin):
    """Highlight rendered code blocks of every page."""

    config_scheme = (
        ("enabled", config_options.Type(bool, default=True)),
        (
            "grammar_packages",
            config_options.Type(list, default=["fencesmith.grammars"]),
        ),
        ("class_whitelist", config_options.Optional(config_options.Type(list))),
        (
            "package_precedence",
            config_options.Choice(("last", "first"), default="last"),
        ),
        (
            "class_style",
            config_options.Choice(("segments", "joined"), default="segments"),
        ),
    )

    def __init__(self) -> None:
        self._session: HighlightSession | None = None

    def _options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "grammar_packages": list(self.config.get("grammar_packages") or []),
            "package_precedence": self.config.get("package_precedence", "last"),
            "class_style": self.config.get("class_style", "segments"),
        }
        whitelist = self.config.get("class_whitelist")
        if whitelist is not None:
            options["class_whitelist"] = list(whitelist)
        return options

    def on_config(self, config: MkDocsConfig) -> MkDocsConfig:
        """Validate the options and start a fresh processing run."""
        self._session = None
        if not self.config.get("enabled", True):
            return config
        try:
            self._session = HighlightSession(
                self._options(), emitter=LoggingEmitter(logger_obj=log)
            )
        except ConfigurationError as exc:
            raise PluginError(f"fencesmith: {exc}") from exc
        return config

    def on_page_content(
        self,
        html: str,
        page: Page,
        config: MkDocsConfig,
        files: Files,
    ) -> str:
        """Return the page HTML with highlighted code blocks."""
        del config, files
        if self._session is None:
            return html
        try:
            return self._session.highlight_html_sync(html)
        except FencesmithError as exc:
            raise PluginError(f"fencesmith: {page.file.src_uri}: {exc}") from exc

    def on_post_build(self, config: MkDocsConfig) -> None:
        """Release the grammar registry once the build is over."""
        del config
        if self._session is not None:
            self._session.cancel()
        self._session = None


__all__ = ["FencesmithPlugin"]
