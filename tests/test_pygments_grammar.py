from __future__ import annotations

import asyncio
from collections.abc import Iterator
from typing import Any

from pygments.token import Keyword, Name, Text
from pygments.util import ClassNotFound
import pytest

from fencesmith.adapters.grammars.packages import load_grammar_package
from fencesmith.adapters.grammars.pygments import PygmentsGrammar, load_grammars, token_name
from fencesmith.core.highlighter import ClassPolicy, highlight_text


def test_token_name_is_dotted_lowercase() -> None:
    assert token_name(Keyword.Declaration) == "keyword.declaration"
    assert token_name(Name.Builtin.Pseudo) == "name.builtin.pseudo"


def test_tokens_become_flat_tree() -> None:
    grammar = PygmentsGrammar("python")
    source = "x = 'é'\n"

    root = grammar.parse(source.encode("utf-8"))

    assert root.type == "source"
    assert root.end_byte == len(source.encode("utf-8"))
    assert all(child.parent is root for child in root.children)
    assert [child.end_byte for child in root.children][-1] == root.end_byte


class ScriptedLexer:
    """Lexer double replaying a fixed token stream whatever the input."""

    def __init__(self, tokens: list[tuple[int, Any, str]]) -> None:
        self.tokens = tokens

    def get_tokens_unprocessed(self, text: str) -> Iterator[tuple[int, Any, str]]:
        yield from self.tokens


def test_offsets_follow_token_values_not_indices() -> None:
    grammar = PygmentsGrammar("python")
    grammar._lexer = ScriptedLexer(
        [(0, Keyword, "é"), (0, Name, "x"), (0, Text, "\r\n"), (0, Name, "z")]
    )
    source = "éx\r\nz"

    root = grammar.parse(source.encode("utf-8"))

    assert [(child.start_byte, child.end_byte) for child in root.children] == [
        (0, 2),
        (2, 3),
        (3, 5),
        (5, 6),
    ]
    assert [child.is_named for child in root.children] == [True, True, False, True]
    assert highlight_text(grammar, source).text() == source


def test_rewritten_input_stops_the_tree() -> None:
    grammar = PygmentsGrammar("python")
    grammar._lexer = ScriptedLexer([(0, Name, "a"), (1, Text, "\n"), (2, Name, "b")])
    source = "a\r\nb"

    root = grammar.parse(source.encode("utf-8"))

    assert [(child.start_byte, child.end_byte) for child in root.children] == [(0, 1)]
    assert root.end_byte == len(source)
    assert highlight_text(grammar, source).text() == source


def test_pygments_grammar_preserves_text_and_classes() -> None:
    grammar = PygmentsGrammar.for_language("python")
    source = "def f():\n    return 'naïve'\n\n\n"

    span = highlight_text(grammar, source, language="python")

    assert span.text() == source
    assert span.classes == ("source", "python")
    keywords = [node.text() for node in span.iter_spans() if "keyword" in node.classes]
    assert keywords == ["def", "return"]


def test_joined_style_uses_token_path() -> None:
    grammar = PygmentsGrammar("javascript")

    span = highlight_text(grammar, "let x;", policy=ClassPolicy(style="joined"))

    assert "keyword-declaration" in {name for node in span.iter_spans() for name in node.classes}


def test_unknown_alias_fails_early() -> None:
    with pytest.raises(ClassNotFound):
        PygmentsGrammar.for_language("definitely-not-a-language")


def test_load_grammars_shares_instances_between_aliases() -> None:
    grammars = load_grammars(["python", "py", "js"])

    assert set(grammars) == {"python", "py", "js"}
    assert grammars["python"] is grammars["py"]
    assert grammars["js"] is not grammars["py"]


def test_module_is_a_grammar_package() -> None:
    grammars = asyncio.run(load_grammar_package("fencesmith.adapters.grammars.pygments"))

    assert "python" in grammars
    assert "javascript" in grammars
    assert isinstance(grammars["python"], PygmentsGrammar)
