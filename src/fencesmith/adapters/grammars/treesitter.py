"""Tree-sitter backed grammar sources."""

from __future__ import annotations

from collections.abc import Mapping
import importlib
import threading
from typing import Any

from tree_sitter import Language, Parser, Tree

from fencesmith.core.grammar import ScopeMappings, ScopeResolver


class TreeSitterGrammar:
    """Pair a tree-sitter language with the scope table used to highlight it."""

    def __init__(
        self,
        language: Language,
        scopes: ScopeResolver | Mapping[str, Any],
        *,
        name: str | None = None,
    ) -> None:
        self.language = language
        self.scopes: ScopeResolver = (
            scopes if isinstance(scopes, ScopeResolver) else ScopeMappings(scopes)
        )
        self.name = name
        # Parsers are not safe to share between threads
        self._local = threading.local()

    def __repr__(self) -> str:
        return f"TreeSitterGrammar({self.name or 'unnamed'!r})"

    @classmethod
    def from_module(
        cls,
        module_name: str,
        scopes: ScopeResolver | Mapping[str, Any],
        *,
        function: str = "language",
        name: str | None = None,
    ) -> TreeSitterGrammar:
        """Build a grammar from a binding module such as ``tree_sitter_javascript``."""
        module = importlib.import_module(module_name)
        factory = getattr(module, function, None)
        if not callable(factory):
            raise AttributeError(f"Module '{module_name}' has no callable '{function}'")
        return cls(Language(factory()), scopes, name=name or module_name)

    def parse(self, source: bytes) -> Tree:
        """Parse ``source`` into a concrete syntax tree."""
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(self.language)
            self._local.parser = parser
        return parser.parse(source)


__all__ = ["TreeSitterGrammar"]
