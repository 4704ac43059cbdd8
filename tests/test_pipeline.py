from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from fencesmith import highlight_html, highlight_markdown
from fencesmith.api.pipeline import HighlightSession, run_sync
from fencesmith.core.exceptions import ConfigurationError, InitializationError


class CountingLoader:
    def __init__(self, grammars: Mapping[str, Any]) -> None:
        self.grammars = grammars
        self.calls = 0

    async def __call__(self, package: str) -> Mapping[str, Any]:
        self.calls += 1
        return self.grammars


def test_session_validates_options_eagerly(word_grammar) -> None:
    loader = CountingLoader({})

    with pytest.raises(ConfigurationError):
        HighlightSession(
            {"grammars": {"js": word_grammar}, "grammar_packages": ["pkg"]}, loader=loader
        )
    assert loader.calls == 0


def test_session_loads_packages_once_across_documents(word_grammar) -> None:
    loader = CountingLoader({"js": word_grammar})
    session = HighlightSession({"grammar_packages": ["pkg"]}, loader=loader)
    fence = '<pre><code class="language-js">let x = 1;</code></pre>'

    outputs = [session.highlight_html_sync(fence * count) for count in (1, 2, 3)]

    assert loader.calls == 1
    assert all('class="tree-sitter language-js"' in html for html in outputs)
    assert outputs[2].count("tree-sitter language-js") == 3


def test_session_concurrent_documents_share_registry(word_grammar) -> None:
    loader = CountingLoader({"js": word_grammar})
    session = HighlightSession({"grammar_packages": ["pkg"]}, loader=loader)
    fence = '<pre><code class="language-js">let x = 1;</code></pre>'

    async def scenario() -> list[str]:
        return await asyncio.gather(*(session.highlight_html(fence) for _ in range(10)))

    outputs = asyncio.run(scenario())

    assert loader.calls == 1
    assert len(set(outputs)) == 1


def test_initialization_failure_aborts_transformation() -> None:
    async def failing_loader(package: str) -> Mapping[str, Any]:
        raise ImportError(f"no module named {package!r}")

    session = HighlightSession({"grammar_packages": ["missing"]}, loader=failing_loader)

    with pytest.raises(InitializationError, match="missing"):
        session.highlight_html_sync('<pre><code class="language-js">x</code></pre>')
    with pytest.raises(InitializationError):
        session.highlight_html_sync("<p>again</p>")


def test_transform_returns_context(word_grammar) -> None:
    session = HighlightSession({"grammars": {"js": word_grammar}})
    soup = session.highlighter.parse('<pre><code class="language-js">let x;</code></pre>')

    context = asyncio.run(session.transform(soup))

    assert [block.block.lang for block in context.blocks] == ["js"]
    assert context.registry is session.registry_sync()


def test_markdown_front_matter_is_not_rendered(word_grammar) -> None:
    source = "---\ntitle: Demo\n---\n\n```js\nlet x = 1;\n```\n"

    html = highlight_markdown(source, {"grammars": {"js": word_grammar}})

    assert "title: Demo" not in html
    assert 'class="tree-sitter language-js"' in html


def test_module_helper_leaves_unknown_languages(word_grammar) -> None:
    html = '<pre><code class="language-python">x = 1</code></pre>'

    assert highlight_html(html, {"grammars": {"js": word_grammar}}) == html


def test_run_sync_refuses_nested_loops() -> None:
    async def nested() -> None:
        async def noop() -> int:
            return 1

        run_sync(noop())

    with pytest.raises(RuntimeError, match="event loop is running"):
        asyncio.run(nested())


def test_session_recovers_after_abandoned_run(word_grammar) -> None:
    calls: list[str] = []

    async def slow_loader(package: str) -> Mapping[str, Any]:
        calls.append(package)
        await asyncio.sleep(0.05)
        return {"js": word_grammar}

    session = HighlightSession({"grammar_packages": ["pkg"]}, loader=slow_loader)

    async def abandon() -> None:
        pending = asyncio.ensure_future(session.registry())
        while not calls:
            await asyncio.sleep(0)
        await asyncio.wait_for(pending, 0.001)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(abandon())

    html = session.highlight_html_sync('<pre><code class="language-js">let x;</code></pre>')

    assert 'class="tree-sitter language-js"' in html
    assert calls == ["pkg", "pkg"]


def test_session_cancel_abandons_in_flight_load(word_grammar) -> None:
    calls: list[str] = []

    async def slow_loader(package: str) -> Mapping[str, Any]:
        calls.append(package)
        await asyncio.sleep(0.01)
        return {"js": word_grammar}

    session = HighlightSession({"grammar_packages": ["pkg"]}, loader=slow_loader)

    async def scenario():
        pending = asyncio.ensure_future(session.registry())
        while not calls:
            await asyncio.sleep(0)
        session.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending
        return await session.registry()

    registry = asyncio.run(scenario())

    assert registry["js"] is word_grammar
    assert calls == ["pkg", "pkg"]
