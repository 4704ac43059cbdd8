"""Pygments lexers exposed as grammar sources.

A lexer produces a flat token stream rather than a syntax tree, so the grammar
wraps it into a two-level tree: a ``source`` root with one child per token. The
token type path doubles as node type and scope, e.g. ``Token.Keyword.Constant``
becomes ``keyword.constant``. Plain text and whitespace tokens are anonymous and
carry no scope.

The module is itself a grammar package: listing ``fencesmith.adapters.grammars.pygments``
in ``grammar_packages`` registers every alias known to Pygments.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pygments.lexer import Lexer
from pygments.lexers import find_lexer_class_by_name, get_all_lexers, get_lexer_by_name
from pygments.token import Text, _TokenType

from fencesmith.core.grammar import SyntaxNode


@dataclass(eq=False, slots=True)
class TokenNode:
    """Synthetic syntax node built from a Pygments token."""

    type: str
    is_named: bool
    start_byte: int
    end_byte: int
    children: list[TokenNode] = field(default_factory=list)
    parent: TokenNode | None = None


class _TokenScopes:
    def __init__(self, root_scope: str) -> None:
        self.root_scope = root_scope

    def scopes_for(self, node: SyntaxNode, source: bytes) -> list[str]:
        if node.parent is None:
            return [self.root_scope]
        return [node.type] if node.is_named else []


def token_name(token_type: _TokenType) -> str:
    """Return the dotted, lower-case name of a Pygments token type."""
    return ".".join(part.lower() for part in token_type)


class PygmentsGrammar:
    """Grammar source backed by a Pygments lexer."""

    def __init__(self, alias: str, **options: Any) -> None:
        self.alias = alias
        self.options = options
        self.scopes = _TokenScopes(f"source.{alias}")
        self._lexer: Lexer | None = None

    def __repr__(self) -> str:
        return f"PygmentsGrammar({self.alias!r})"

    @classmethod
    def for_language(cls, alias: str, **options: Any) -> PygmentsGrammar:
        """Return a grammar for ``alias``, failing early when Pygments lacks it."""
        find_lexer_class_by_name(alias)
        return cls(alias, **options)

    @property
    def lexer(self) -> Lexer:
        """Return the lazily created lexer."""
        if self._lexer is None:
            options = {"stripnl": False, "ensurenl": False, **self.options}
            self._lexer = get_lexer_by_name(self.alias, **options)
        return self._lexer

    def parse(self, source: bytes) -> TokenNode:
        """Tokenise ``source`` into a flat syntax tree."""
        text = source.decode("utf-8")
        root = TokenNode("source", True, 0, len(source))
        char_pos = 0
        byte_pos = 0
        # Offsets follow the token values, the reported indices are not trusted.
        for _index, token_type, value in self.lexer.get_tokens_unprocessed(text):
            if not value:
                continue
            if not text.startswith(value, char_pos):
                # lexer rewrote the input; the rest stays unclassified
                break
            start = byte_pos
            end = start + len(value.encode("utf-8"))
            char_pos += len(value)
            byte_pos = end
            named = token_type not in Text
            root.children.append(TokenNode(token_name(token_type), named, start, end, parent=root))
        return root


def load_grammars(aliases: Iterable[str] | None = None) -> dict[str, PygmentsGrammar]:
    """Return grammars keyed by Pygments alias.

    Every lexer known to Pygments is registered unless ``aliases`` restricts the
    selection. Aliases of the same lexer share one grammar instance.
    """
    wanted = set(aliases) if aliases is not None else None
    grammars: dict[str, PygmentsGrammar] = {}
    for _name, lexer_aliases, _filenames, _mimetypes in get_all_lexers():
        if not lexer_aliases:
            continue
        selected = [alias for alias in lexer_aliases if wanted is None or alias in wanted]
        if not selected:
            continue
        grammar = PygmentsGrammar(lexer_aliases[0])
        for alias in selected:
            grammars.setdefault(alias, grammar)
    return grammars


__all__ = ["PygmentsGrammar", "TokenNode", "load_grammars", "token_name"]
