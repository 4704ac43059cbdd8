"""Context primitives shared by the document transformer handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .diagnostics import DiagnosticEmitter, NullEmitter
from .highlighter import ClassPolicy, Span


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .config import HighlightConfig
    from .registry import GrammarRegistry


@dataclass(slots=True)
class CodeBlock:
    """Core view of a fenced code block found in the host document."""

    lang: str | None
    meta: str | None
    value: str
    element: Tag | None = None


@dataclass(slots=True)
class HighlightedBlock:
    """Result attached to a code block after a successful highlight."""

    block: CodeBlock
    classes: list[str]
    spans: Span


@dataclass
class HighlightContext:
    """Shared context passed to every handler while transforming a document."""

    config: HighlightConfig
    registry: GrammarRegistry
    document: Any = None
    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)
    blocks: list[HighlightedBlock] = field(default_factory=list)
    skipped: list[CodeBlock] = field(default_factory=list)

    _processed_nodes: set[int] = field(default_factory=set, init=False)
    _skip_children: set[int] = field(default_factory=set, init=False)
    _policy: ClassPolicy | None = field(default=None, init=False)

    @property
    def policy(self) -> ClassPolicy:
        """Return the class derivation policy for the configured options."""
        if self._policy is None:
            self._policy = ClassPolicy.from_config(self.config)
        return self._policy

    def mark_processed(self, node: Any) -> None:
        """Flag a node as already transformed."""
        self._processed_nodes.add(id(node))

    def is_processed(self, node: Any) -> bool:
        """Check whether a node has already been transformed."""
        return id(node) in self._processed_nodes

    def suppress_children(self, node: Any) -> None:
        """Prevent traversal of node children."""
        self._skip_children.add(id(node))

    def should_skip_children(self, node: Any) -> bool:
        """Check whether children should be skipped during traversal."""
        return id(node) in self._skip_children


__all__ = ["CodeBlock", "HighlightContext", "HighlightedBlock"]
