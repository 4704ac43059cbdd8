"""Rule declaration and execution engine for document transformations.

Handlers declare their intent via the ``@renders`` decorator, which records the
targeted tags and a priority. At runtime the :class:`RenderEngine` collects
those declarations and walks the BeautifulSoup DOM depth-first, dispatching
each element to the rules registered for its tag in a stable order.

`Declaration layer`
: ``@renders`` stores a lightweight :class:`RuleDefinition` on every handler.

`Registry layer`
: :class:`RenderRegistry` collates definitions into sorted :class:`RenderRule`
  buckets keyed by tag.

`Execution layer`
: :class:`RenderEngine` drives the private :class:`_DOMVisitor`, which honours
  processed markers and child suppression recorded on the context.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .context import HighlightContext


RuleCallable = Callable[[Any, "HighlightContext"], None]


@dataclass
class RenderRule:
    """Concrete rule registered in the engine."""

    priority: int
    tags: tuple[str, ...]
    name: str
    handler: RuleCallable
    auto_mark: bool = True
    nestable: bool = True


@dataclass(frozen=True)
class RuleDefinition:
    """Descriptor installed on handler callables by the decorator."""

    tags: tuple[str, ...]
    priority: int = 0
    name: str | None = None
    auto_mark: bool = True
    nestable: bool = True

    def bind(self, handler: RuleCallable) -> RenderRule:
        """Create a concrete rule instance bound to the callable."""
        name = self.name or getattr(handler, "__name__", handler.__class__.__name__)
        return RenderRule(
            priority=self.priority,
            tags=self.tags,
            name=name,
            handler=handler,
            auto_mark=self.auto_mark,
            nestable=self.nestable,
        )


class RenderRegistry:
    """Container used to gather rules before execution."""

    def __init__(self) -> None:
        self._rules: dict[str, list[RenderRule]] = {}

    def register(self, rule: RenderRule) -> None:
        """Register a rule for every tag it targets."""
        for tag in rule.tags:
            bucket = self._rules.setdefault(tag, [])
            if any(existing.name == rule.name for existing in bucket):
                continue
            bucket.append(rule)
            bucket.sort(key=lambda item: (item.priority, item.name))

    def rules_for(self, tag: str) -> tuple[RenderRule, ...]:
        """Return the ordered rules registered for ``tag``."""
        return tuple(self._rules.get(tag, ()))

    def tags(self) -> list[str]:
        """Return the tags that have at least one rule."""
        return sorted(self._rules)

    def describe(self) -> list[dict[str, object]]:
        """Return a serialisable snapshot of the registered rules."""
        return [
            {"tag": tag, "name": rule.name, "priority": rule.priority, "order": order}
            for tag in self.tags()
            for order, rule in enumerate(self._rules[tag])
        ]


def renders(
    *tags: str,
    priority: int = 0,
    name: str | None = None,
    auto_mark: bool = True,
    nestable: bool = True,
) -> Callable[[RuleCallable], RuleCallable]:
    """Decorator used to register element handlers."""
    if not tags:
        raise TypeError("@renders requires at least one tag")
    definition = RuleDefinition(
        tags=tuple(tags),
        priority=priority,
        name=name,
        auto_mark=auto_mark,
        nestable=nestable,
    )

    def decorator(handler: RuleCallable) -> RuleCallable:
        cast(Any, handler).__render_rule__ = definition
        return handler

    return decorator


class RenderEngine:
    """Execution engine that orchestrates the registered rules."""

    def __init__(self, registry: RenderRegistry | None = None) -> None:
        self.registry = registry or RenderRegistry()

    def collect_from(self, owner: Any) -> None:
        """Collect decorated callables from an object or module."""
        for attribute in dir(owner):
            handler = getattr(owner, attribute)
            definition = getattr(handler, "__render_rule__", None)
            if isinstance(definition, RuleDefinition):
                self.registry.register(definition.bind(handler))

    def register(self, handler: RuleCallable) -> None:
        """Register a standalone callable decorated with ``@renders``."""
        definition = getattr(handler, "__render_rule__", None)
        if not isinstance(definition, RuleDefinition):
            msg = "Handler must be decorated with @renders"
            raise TypeError(msg)
        self.registry.register(definition.bind(handler))

    def run(self, root: Tag, context: HighlightContext) -> None:
        """Execute all registered rules against the provided DOM root."""
        _DOMVisitor(self.registry, context).walk(root)


class _DOMVisitor:
    """Depth-first visitor applying rules by tag while traversing the DOM tree."""

    def __init__(self, registry: RenderRegistry, context: HighlightContext) -> None:
        self.registry = registry
        self.context = context

    def walk(self, node: Tag) -> None:
        """Traverse descendants depth-first and apply matching rules."""
        self._dispatch(node)
        if self.context.should_skip_children(node):
            return

        # Handlers may replace children while we iterate
        for child in list(_children(node)):
            if getattr(child, "name", None):
                self.walk(child)

    def _dispatch(self, node: Tag) -> None:
        tag_name = getattr(node, "name", None)
        if not tag_name:
            return

        for rule in self.registry.rules_for(tag_name):
            if rule.auto_mark and self.context.is_processed(node):
                continue
            rule.handler(node, self.context)
            if rule.auto_mark:
                self.context.mark_processed(node)
            if not rule.nestable:
                self.context.suppress_children(node)


def _children(node: Any) -> Iterable[Any]:
    return getattr(node, "children", ())


__all__ = ["RenderEngine", "RenderRegistry", "RenderRule", "RuleDefinition", "renders"]
