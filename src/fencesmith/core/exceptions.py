"""Custom exception hierarchy for the highlighting pipeline."""

from __future__ import annotations


class FencesmithError(RuntimeError):
    """Base exception for highlighting failures."""


class ConfigurationError(FencesmithError):
    """Raised when highlighting options are missing or inconsistent."""


class GrammarPackageError(FencesmithError):
    """Raised when a grammar package cannot be imported or decoded."""

    def __init__(self, package: str, message: str) -> None:
        super().__init__(f"Grammar package '{package}': {message}")
        self.package = package


class InitializationError(FencesmithError):
    """Raised when the grammar registry could not be built for a run."""

    def __init__(self, message: str, *, package: str | None = None) -> None:
        super().__init__(message)
        self.package = package


class ParseFailure(FencesmithError):
    """Raised when a grammar fails to produce a syntax tree for a block."""

    def __init__(self, message: str, *, language: str | None = None) -> None:
        super().__init__(message)
        self.language = language


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigurationError",
    "FencesmithError",
    "GrammarPackageError",
    "InitializationError",
    "ParseFailure",
    "exception_hint",
    "exception_messages",
]
