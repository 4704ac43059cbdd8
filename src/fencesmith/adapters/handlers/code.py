"""Code-related handlers for the HTML highlighter."""

from __future__ import annotations

import logging

from bs4.element import Tag

from fencesmith.core.context import CodeBlock, HighlightContext, HighlightedBlock
from fencesmith.core.exceptions import ParseFailure
from fencesmith.core.highlighter import highlight_text
from fencesmith.core.rules import renders

from ._helpers import coerce_attribute, gather_classes, owner_document, span_to_tag


logger = logging.getLogger(__name__)

_LANGUAGE_PREFIXES = ("language-", "lang-")


def _extract_language(element: Tag | None) -> str | None:
    if element is None:
        return None
    for cls in gather_classes(element.get("class")):
        for prefix in _LANGUAGE_PREFIXES:
            if cls.startswith(prefix) and len(cls) > len(prefix):
                return cls[len(prefix) :]
    return None


def extract_code_block(element: Tag) -> CodeBlock | None:
    """Return the code block carried by a ``<pre>`` element, if any."""
    code_element = element.find("code", recursive=False)
    if not isinstance(code_element, Tag):
        return None
    language = _extract_language(code_element) or _extract_language(element)
    meta = coerce_attribute(code_element.get("data-meta")) or coerce_attribute(
        element.get("data-meta")
    )
    return CodeBlock(
        lang=language,
        meta=meta,
        value=code_element.get_text(),
        element=element,
    )


def block_classes(language: str, marker: str) -> list[str]:
    """Return the deterministic class list of a highlighted block."""
    return [marker, f"language-{language}"]


@renders("pre", priority=40, name="highlight_code_blocks", nestable=False)
def highlight_code_blocks(element: Tag, context: HighlightContext) -> None:
    """Highlight ``<pre><code class="language-*">`` blocks with registered grammars."""
    marker = context.config.marker_class
    if marker in gather_classes(element.get("class")):
        return

    block = extract_code_block(element)
    if block is None:
        return

    language = block.lang
    if language is None or not context.registry.can_highlight(language):
        context.skipped.append(block)
        return

    try:
        spans = highlight_text(
            context.registry[language],
            block.value,
            policy=context.policy,
            language=language,
        )
    except ParseFailure as exc:
        context.emitter.warning(f"Unable to highlight '{language}' code block: {exc}", exc)
        context.emitter.event("highlight_skipped", {"language": language, "reason": str(exc)})
        context.skipped.append(block)
        return

    soup = owner_document(element, context.document)
    highlighted = span_to_tag(spans, soup)
    classes = block_classes(language, marker)

    code_element = element.find("code", recursive=False)
    if not isinstance(code_element, Tag):  # pragma: no cover - checked by extract_code_block
        return
    element["class"] = list(classes)
    code_element.clear()
    code_element.append(highlighted)

    context.blocks.append(HighlightedBlock(block=block, classes=classes, spans=spans))
    logger.debug("highlighted %s block (%d chars)", language, len(block.value))
