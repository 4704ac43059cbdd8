"""Convert source text into a tree of classified spans.

The highlighter walks the concrete syntax tree returned by a grammar and emits
one :class:`Span` per syntax node. Text lying between child nodes (whitespace,
tokens the grammar does not surface) is emitted as :class:`TextRun` leaves
sliced straight from the source, so concatenating the leaves in order always
yields the original text byte for byte.

Class names derive from scope names according to a :class:`ClassPolicy`. The
optional whitelist only ever removes classes: a span left without classes is
still emitted as a plain container.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Literal, Union

from .exceptions import ParseFailure
from .grammar import Grammar, ScopeResolver


@dataclass(frozen=True, slots=True)
class TextRun:
    """Leaf holding a contiguous run of source text."""

    text: str


@dataclass(frozen=True, slots=True)
class Span:
    """Container carrying style classes and ordered children."""

    classes: tuple[str, ...] = ()
    children: tuple[SpanNode, ...] = ()

    def iter_text(self) -> Iterator[str]:
        """Yield leaf text runs in document order."""
        for child in self.children:
            if isinstance(child, TextRun):
                yield child.text
            else:
                yield from child.iter_text()

    def text(self) -> str:
        """Return the concatenated text of every leaf."""
        return "".join(self.iter_text())

    def iter_spans(self) -> Iterator[Span]:
        """Yield this span and every nested span depth-first."""
        yield self
        for child in self.children:
            if isinstance(child, Span):
                yield from child.iter_spans()


SpanNode = Union[Span, TextRun]


@dataclass(frozen=True, slots=True)
class ClassPolicy:
    """Rules turning scope names into filtered class names."""

    style: Literal["segments", "joined"] = "segments"
    separator: str = "-"
    prefix: str = ""
    whitelist: frozenset[str] | None = None

    @classmethod
    def from_config(cls, config: Any) -> ClassPolicy:
        """Build a policy from a :class:`~fencesmith.core.config.HighlightConfig`."""
        return cls(
            style=config.class_style,
            separator=config.class_separator,
            prefix=config.class_prefix,
            whitelist=config.class_whitelist,
        )

    def classes_for(self, scopes: Iterable[str]) -> tuple[str, ...]:
        """Return de-duplicated, whitelisted class names for ``scopes``."""
        seen: set[str] = set()
        classes: list[str] = []
        for scope in scopes:
            for name in scope_to_classes(
                scope, style=self.style, separator=self.separator, prefix=self.prefix
            ):
                if name in seen:
                    continue
                seen.add(name)
                if self.whitelist is not None and name not in self.whitelist:
                    continue
                classes.append(name)
        return tuple(classes)


def scope_to_classes(
    scope: str,
    *,
    style: Literal["segments", "joined"] = "segments",
    separator: str = "-",
    prefix: str = "",
) -> list[str]:
    """Derive class names from a dotted scope name."""
    segments = [segment for segment in scope.replace(" ", ".").split(".") if segment]
    if not segments:
        return []
    if style == "joined":
        return [prefix + separator.join(segments)]
    return [prefix + segment for segment in segments]


def highlight_text(
    grammar: Grammar,
    source: str,
    *,
    policy: ClassPolicy | None = None,
    language: str | None = None,
) -> Span:
    """Parse ``source`` with ``grammar`` and return the classified span tree.

    Raises :class:`ParseFailure` when the grammar cannot be invoked or returns
    something that is not a syntax tree. Source snippets with syntax errors are
    not failures: grammars are expected to recover with a best-effort tree.
    """
    label = language or "unknown"
    data = source.encode("utf-8")
    try:
        tree = grammar.parse(data)
    except ParseFailure:
        raise
    except Exception as exc:
        raise ParseFailure(
            f"Grammar for '{label}' failed to parse: {exc}", language=language
        ) from exc

    root = getattr(tree, "root_node", tree)
    if root is None or not hasattr(root, "start_byte"):
        raise ParseFailure(f"Grammar for '{label}' returned no syntax tree", language=language)

    builder = _SpanBuilder(grammar.scopes, data, policy or ClassPolicy())
    try:
        return builder.build(root)
    except ParseFailure:
        raise
    except (RecursionError, UnicodeDecodeError, AttributeError, TypeError, ValueError) as exc:
        raise ParseFailure(
            f"Cannot highlight '{label}' syntax tree: {exc}", language=language
        ) from exc


class _SpanBuilder:
    def __init__(self, resolver: ScopeResolver, source: bytes, policy: ClassPolicy) -> None:
        self.resolver = resolver
        self.source = source
        self.policy = policy

    def build(self, root: Any) -> Span:
        size = len(self.source)
        start = min(max(root.start_byte, 0), size)
        end = min(max(root.end_byte, start), size)
        span = self._visit(root, start, end)

        if start == 0 and end == size and span is not None:
            return span

        children: list[SpanNode] = []
        if start > 0:
            children.append(self._text(0, start))
        if span is not None:
            children.append(span)
        if end < size:
            children.append(self._text(max(end, start), size))
        return Span((), tuple(children))

    def _visit(self, node: Any, lower: int, upper: int) -> Span | None:
        start = max(node.start_byte, lower)
        end = min(node.end_byte, upper)
        if end <= start:
            return None

        classes = self.policy.classes_for(self.resolver.scopes_for(node, self.source))
        children: list[SpanNode] = []
        cursor = start
        for child in node.children:
            child_start = max(child.start_byte, cursor)
            child_end = min(child.end_byte, end)
            if child_end <= child_start:
                continue
            if child_start > cursor:
                children.append(self._text(cursor, child_start))
            span = self._visit(child, child_start, child_end)
            if span is not None:
                children.append(span)
                cursor = child_end
        if cursor < end:
            children.append(self._text(cursor, end))
        return Span(classes, tuple(children))

    def _text(self, start: int, end: int) -> TextRun:
        return TextRun(self.source[start:end].decode("utf-8"))


__all__ = [
    "ClassPolicy",
    "Span",
    "SpanNode",
    "TextRun",
    "highlight_text",
    "scope_to_classes",
]
