"""Grammar registry assembled from explicit grammars and loaded packages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Literal

from .grammar import Grammar


class GrammarRegistry(Mapping[str, Grammar]):
    """Read-only mapping from language keys to grammars."""

    __slots__ = ("_grammars",)

    def __init__(self, grammars: Mapping[str, Grammar] | None = None) -> None:
        self._grammars: Mapping[str, Grammar] = MappingProxyType(dict(grammars or {}))

    def __getitem__(self, key: str) -> Grammar:
        return self._grammars[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._grammars)

    def __len__(self) -> int:
        return len(self._grammars)

    def __repr__(self) -> str:
        return f"GrammarRegistry({sorted(self._grammars)!r})"

    def can_highlight(self, language: str | None) -> bool:
        """Return True when a grammar is registered for ``language``."""
        return bool(language) and language in self._grammars

    def languages(self) -> list[str]:
        """Return the registered language keys sorted alphabetically."""
        return sorted(self._grammars)


def build_registry(
    explicit: Mapping[str, Grammar] | None,
    loaded: Iterable[Mapping[str, Grammar]] = (),
    *,
    precedence: Literal["last", "first"] = "last",
) -> GrammarRegistry:
    """Merge loaded package grammars with explicit grammars.

    Package mappings are applied in the order they were listed. With the
    ``"last"`` precedence a later package overrides an earlier one on key
    collisions; ``"first"`` keeps the earliest definition instead. Explicit
    grammars are applied last and always win.
    """
    merged: dict[str, Grammar] = {}
    for mapping in loaded:
        for key, grammar in mapping.items():
            if precedence == "first" and key in merged:
                continue
            merged[key] = grammar
    merged.update(explicit or {})
    return GrammarRegistry(merged)


__all__ = ["GrammarRegistry", "build_registry"]
