from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
import re
from types import SimpleNamespace
from typing import Any

import pytest

from fencesmith.core.grammar import ScopeMappings
from fencesmith.ui.cli.state import reset_cli_state


KEYWORDS = frozenset({"let", "const", "return"})

WORD_SCOPES = {
    "program": "source.fake",
    "identifier": "variable",
    "number": "constant.numeric",
    '"let", "const"': "storage.type",
    '"return"': "keyword.control",
    '"="': "keyword.operator.assignment",
    '";"': "punctuation.terminator",
}

_TOKEN = re.compile(r"[^\W\d]\w*|\d+|\S")


@dataclass(eq=False)
class FakeNode:
    type: str
    is_named: bool
    start_byte: int
    end_byte: int
    children: list[FakeNode] = field(default_factory=list)
    parent: FakeNode | None = None


class WordGrammar:
    """Flat tokenizer producing identifiers, numbers, keywords and punctuation."""

    def __init__(self, scopes: dict[str, Any] | None = None) -> None:
        self.scopes = ScopeMappings(scopes if scopes is not None else WORD_SCOPES)
        self.calls = 0

    def parse(self, source: bytes) -> Any:
        self.calls += 1
        text = source.decode("utf-8")
        root = FakeNode("program", True, 0, len(source))
        for match in _TOKEN.finditer(text):
            token = match.group()
            start = len(text[: match.start()].encode("utf-8"))
            end = start + len(token.encode("utf-8"))
            if token in KEYWORDS:
                node_type, named = token, False
            elif token[0].isdigit():
                node_type, named = "number", True
            elif token[0].isalpha() or token[0] == "_":
                node_type, named = "identifier", True
            else:
                node_type, named = token, False
            root.children.append(FakeNode(node_type, named, start, end, parent=root))
        return SimpleNamespace(root_node=root)


class FailingGrammar:
    scopes = ScopeMappings({})

    def parse(self, source: bytes) -> Any:
        raise RuntimeError("parser crashed")


@pytest.fixture
def word_grammar() -> WordGrammar:
    return WordGrammar()


@pytest.fixture
def failing_grammar() -> FailingGrammar:
    return FailingGrammar()


@pytest.fixture
def grammar_factory() -> type[WordGrammar]:
    return WordGrammar


@pytest.fixture
def node_factory() -> type[FakeNode]:
    return FakeNode


@pytest.fixture(autouse=True)
def _fresh_cli_state() -> Iterator[None]:
    reset_cli_state()
    yield
    reset_cli_state()
