"""Grammar capability protocols and the selector-based scope table.

A grammar is anything able to turn source bytes into a concrete syntax tree
and to name the highlight scopes of the nodes in that tree. The highlighter
never looks past these protocols, which keeps tree-sitter, Pygments, and test
doubles interchangeable.

Scope tables

`ScopeMappings` implements the selector syntax used by tree-sitter grammar
descriptors:

`identifier`
: a named node type.

`"let"`
: an anonymous token, written between double quotes.

`call_expression > identifier`
: direct-child chains; the right-most step matches the node itself.

`arguments > identifier:nth-child(0)`
: position filter (0-based index among all children of the parent).

Values are either a scope (`"keyword.control"`), a list of scopes applied
together, or a list of alternatives mixing conditionals such as
``{"match": "^[A-Z]", "scopes": "constant"}`` or ``{"exact": "self",
"scopes": "variable.language"}`` with unconditional fallbacks. The first
applicable alternative wins. Longer selectors take precedence over shorter
ones targeting the same node type.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
import re
from typing import Any, Protocol, runtime_checkable


class SyntaxNode(Protocol):
    """Subset of the py-tree-sitter ``Node`` API consumed by the highlighter."""

    @property
    def type(self) -> str: ...

    @property
    def is_named(self) -> bool: ...

    @property
    def start_byte(self) -> int: ...

    @property
    def end_byte(self) -> int: ...

    @property
    def children(self) -> Sequence[Any]: ...

    @property
    def parent(self) -> Any | None: ...


@runtime_checkable
class ScopeResolver(Protocol):
    """Map syntax nodes to highlight scope names."""

    def scopes_for(self, node: SyntaxNode, source: bytes) -> list[str]: ...


@runtime_checkable
class Grammar(Protocol):
    """Parser plus scope resolver for a single language."""

    scopes: ScopeResolver

    def parse(self, source: bytes) -> Any: ...


_STEP_PATTERN = re.compile(
    r'^(?:"(?P<literal>(?:[^"\\]|\\.)*)"|(?P<name>[A-Za-z_][\w.-]*))'
    r"(?::nth-child\((?P<nth>\d+)\))?$"
)


@dataclass(frozen=True, slots=True)
class _Step:
    type: str
    named: bool
    nth_child: int | None = None

    def matches(self, node: SyntaxNode) -> bool:
        if node.type != self.type or bool(node.is_named) != self.named:
            return False
        if self.nth_child is None:
            return True
        parent = node.parent
        if parent is None:
            return False
        for index, sibling in enumerate(parent.children):
            if _same_node(sibling, node):
                return index == self.nth_child
        return False


@dataclass(frozen=True, slots=True)
class _Alternative:
    scopes: tuple[str, ...]
    match: re.Pattern[str] | None = None
    exact: str | None = None

    @property
    def conditional(self) -> bool:
        return self.match is not None or self.exact is not None

    def applies(self, text: str) -> bool:
        if self.exact is not None and text != self.exact:
            return False
        if self.match is not None and self.match.search(text) is None:
            return False
        return True


@dataclass(frozen=True, slots=True)
class _Rule:
    selector: str
    steps: tuple[_Step, ...]
    alternatives: tuple[_Alternative, ...]
    order: int

    def matches(self, node: SyntaxNode) -> bool:
        current: Any = node
        for index, step in enumerate(reversed(self.steps)):
            if index:
                current = current.parent
                if current is None:
                    return False
            if not step.matches(current):
                return False
        return True


class ScopeMappings:
    """Selector table resolving syntax nodes to highlight scopes."""

    def __init__(self, table: Mapping[str, Any] | None = None) -> None:
        self._rules: dict[tuple[str, bool], list[_Rule]] = {}
        self._size = 0
        for selector_group, value in (table or {}).items():
            if not isinstance(selector_group, str):
                raise ValueError(f"Scope selector must be a string, got {selector_group!r}")
            alternatives = _parse_value(value, selector_group)
            for selector in _split_outside_quotes(selector_group, ","):
                if not selector:
                    raise ValueError(f"Empty selector in '{selector_group}'")
                steps = tuple(_parse_step(step) for step in _split_outside_quotes(selector, ">"))
                rule = _Rule(selector, steps, alternatives, self._size)
                self._size += 1
                target = steps[-1]
                bucket = self._rules.setdefault((target.type, target.named), [])
                bucket.append(rule)
                bucket.sort(key=lambda item: (-len(item.steps), item.order))

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"ScopeMappings({self._size} selectors)"

    @property
    def selectors(self) -> list[str]:
        """Return every registered selector in declaration order."""
        rules = [rule for bucket in self._rules.values() for rule in bucket]
        return [rule.selector for rule in sorted(rules, key=lambda item: item.order)]

    def scopes_for(self, node: SyntaxNode, source: bytes) -> list[str]:
        """Return the scopes of the most specific selector matching ``node``."""
        candidates = self._rules.get((node.type, bool(node.is_named)))
        if not candidates:
            return []

        text: str | None = None
        for rule in candidates:
            if not rule.matches(node):
                continue
            for alternative in rule.alternatives:
                if alternative.conditional:
                    if text is None:
                        text = source[node.start_byte : node.end_byte].decode(
                            "utf-8", errors="replace"
                        )
                    if not alternative.applies(text):
                        continue
                return list(alternative.scopes)
        return []


def _same_node(left: Any, right: Any) -> bool:
    if left is right:
        return True
    # py-tree-sitter hands out fresh wrappers on every access.
    try:
        return bool(left == right)
    except Exception:  # pragma: no cover - exotic node implementations
        return False


def _split_outside_quotes(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\" and in_quotes:
            current.append(char)
            escaped = True
            continue
        if char == '"':
            in_quotes = not in_quotes
        elif char == separator and not in_quotes:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if in_quotes:
        raise ValueError(f"Unterminated quote in selector '{text}'")
    parts.append("".join(current).strip())
    return parts


def _parse_step(step: str) -> _Step:
    match = _STEP_PATTERN.match(step)
    if match is None:
        raise ValueError(f"Invalid scope selector step '{step}'")
    nth = match.group("nth")
    nth_child = int(nth) if nth is not None else None
    literal = match.group("literal")
    if literal is not None:
        return _Step(re.sub(r"\\(.)", r"\1", literal), named=False, nth_child=nth_child)
    return _Step(match.group("name"), named=True, nth_child=nth_child)


def _coerce_scopes(value: Any, selector: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, Iterable) and not isinstance(value, (bytes, Mapping)):
        scopes = tuple(item for item in value if isinstance(item, str) and item)
        if len(scopes) == len(list(value)):
            return scopes
    raise ValueError(f"Invalid scopes for selector '{selector}': {value!r}")


def _parse_conditional(entry: Mapping[str, Any], selector: str) -> _Alternative:
    if "scopes" not in entry:
        raise ValueError(f"Conditional scope for '{selector}' is missing 'scopes'")
    unknown = set(entry) - {"scopes", "match", "exact"}
    if unknown:
        keys = ", ".join(sorted(unknown))
        raise ValueError(f"Unsupported keys for selector '{selector}': {keys}")
    pattern = entry.get("match")
    exact = entry.get("exact")
    try:
        compiled = re.compile(pattern) if pattern is not None else None
    except re.error as exc:
        raise ValueError(f"Invalid match pattern for '{selector}': {exc}") from exc
    return _Alternative(
        scopes=_coerce_scopes(entry["scopes"], selector),
        match=compiled,
        exact=str(exact) if exact is not None else None,
    )


def _parse_value(value: Any, selector: str) -> tuple[_Alternative, ...]:
    if isinstance(value, Mapping):
        return (_parse_conditional(value, selector),)
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return (_Alternative(_coerce_scopes(value, selector)),)
        alternatives: list[_Alternative] = []
        for item in value:
            if isinstance(item, Mapping):
                alternatives.append(_parse_conditional(item, selector))
            else:
                alternatives.append(_Alternative(_coerce_scopes(item, selector)))
        return tuple(alternatives)
    return (_Alternative(_coerce_scopes(value, selector)),)


__all__ = [
    "Grammar",
    "ScopeMappings",
    "ScopeResolver",
    "SyntaxNode",
]
