from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bs4 import BeautifulSoup

from fencesmith.adapters.handlers.code import extract_code_block
from fencesmith.adapters.html import HtmlHighlighter
from fencesmith.core.config import validate_config
from fencesmith.core.registry import GrammarRegistry
from fencesmith.core.rules import renders


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))


def _setup(grammars: dict[str, Any], **options: Any):
    config = validate_config({"grammars": grammars, **options})
    return HtmlHighlighter(config), GrammarRegistry(config.grammars)


def test_known_language_gains_marker_and_spans(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    soup = highlighter.parse('<pre><code class="language-js">let x = 1;</code></pre>')

    context = highlighter.transform(soup, registry)

    pre = soup.find("pre")
    assert pre["class"] == ["tree-sitter", "language-js"]
    assert pre.get_text() == "let x = 1;"
    assert pre.code.find("span", class_="storage") is not None
    assert len(context.blocks) == 1
    block = context.blocks[0]
    assert block.classes == ["tree-sitter", "language-js"]
    assert block.spans.text() == "let x = 1;"
    assert block.block.value == "let x = 1;"
    assert block.block.lang == "js"


def test_unknown_language_is_left_untouched(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    html = '<pre><code class="language-python">x = 1</code></pre>'
    soup = highlighter.parse(html)

    context = highlighter.transform(soup, registry)

    assert str(soup) == html
    assert context.blocks == []
    assert [block.lang for block in context.skipped] == ["python"]
    assert word_grammar.calls == 0


def test_block_without_language_is_left_untouched(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    html = "<pre><code>let x = 1;</code></pre>"

    assert highlighter.render(html, registry) == html


def test_parse_failure_leaves_block_unchanged(word_grammar, failing_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar, "broken": failing_grammar})
    emitter = RecordingEmitter()
    html = (
        '<pre><code class="language-broken">a &lt; b</code></pre>'
        '<pre><code class="language-js">let y = 2;</code></pre>'
    )
    soup = highlighter.parse(html)

    context = highlighter.transform(soup, registry, emitter=emitter)

    broken, fine = soup.find_all("pre")
    assert str(broken) == '<pre><code class="language-broken">a &lt; b</code></pre>'
    assert fine["class"] == ["tree-sitter", "language-js"]
    assert [block.block.lang for block in context.blocks] == ["js"]
    assert [block.lang for block in context.skipped] == ["broken"]
    assert emitter.warnings and "broken" in emitter.warnings[0]
    assert emitter.events[0][0] == "highlight_skipped"


def test_markup_characters_are_escaped(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    soup = highlighter.parse('<pre><code class="language-js">a &lt;b&gt; &amp;&amp; c</code></pre>')

    highlighter.transform(soup, registry)

    assert soup.pre.get_text() == "a <b> && c"
    assert "&lt;" in str(soup.pre)
    assert soup.pre.find("b") is None


def test_whitelist_applies_to_document_spans(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar}, class_whitelist=["storage"])
    soup = highlighter.parse('<pre><code class="language-js">let x = 1;</code></pre>')

    highlighter.transform(soup, registry)

    classes = {name for span in soup.find_all("span") for name in span.get("class", [])}
    assert classes == {"storage"}
    assert soup.pre["class"] == ["tree-sitter", "language-js"]


def test_every_block_is_highlighted_once(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    fence = '<pre><code class="language-js">let x = 1;</code></pre>'
    soup = highlighter.parse(f"<div>{fence}<section>{fence}</section></div>{fence}")

    context = highlighter.transform(soup, registry)

    assert len(context.blocks) == 3
    assert word_grammar.calls == 3


def test_transform_is_idempotent(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    html = highlighter.render('<pre><code class="language-js">let x = 1;</code></pre>', registry)

    assert highlighter.render(html, registry) == html
    assert word_grammar.calls == 1


def test_language_can_come_from_pre_and_meta_is_read() -> None:
    soup = BeautifulSoup(
        '<pre class="lang-js" data-meta="title=&quot;a.js&quot;"><code>let x;</code></pre>',
        "html.parser",
    )

    block = extract_code_block(soup.pre)

    assert block is not None
    assert block.lang == "js"
    assert block.meta == 'title="a.js"'
    assert block.value == "let x;"


def test_inline_code_is_ignored(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    html = '<p>Use <code class="language-js">let</code> here.</p>'

    assert highlighter.render(html, registry) == html


def test_custom_handlers_can_be_registered(word_grammar) -> None:
    highlighter, registry = _setup({"js": word_grammar})
    seen: list[str] = []

    @renders("p", name="collect_paragraphs")
    def collect(element, context) -> None:
        seen.append(element.get_text())

    highlighter.register(collect)
    highlighter.render("<p>one</p><p>two</p>", registry)

    assert seen == ["one", "two"]
    assert "collect_paragraphs" in list(highlighter.iter_registered_rules())


def test_unavailable_parser_falls_back(word_grammar) -> None:
    config = validate_config({"grammars": {"js": word_grammar}})
    highlighter = HtmlHighlighter(config, parser="nonexistent-parser")

    soup = highlighter.parse("<p>Hello</p>")

    assert soup.get_text() == "Hello"
    assert highlighter.parser_backend == "html.parser"
