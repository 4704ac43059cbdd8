"""Primary public API for fencesmith."""

from __future__ import annotations

from fencesmith.api import HighlightSession, highlight_html, highlight_markdown
from fencesmith.core import (
    ClassPolicy,
    CodeBlock,
    ConfigurationError,
    FencesmithError,
    Grammar,
    GrammarPackageError,
    GrammarRegistry,
    HighlightConfig,
    HighlightedBlock,
    InitializationError,
    ParseFailure,
    RegistryInitializer,
    ScopeMappings,
    Span,
    TextRun,
    build_registry,
    highlight_text,
    validate_config,
)
from fencesmith.version import get_version


__version__ = get_version()

__all__ = [
    "ClassPolicy",
    "CodeBlock",
    "ConfigurationError",
    "FencesmithError",
    "Grammar",
    "GrammarPackageError",
    "GrammarRegistry",
    "HighlightConfig",
    "HighlightSession",
    "HighlightedBlock",
    "InitializationError",
    "ParseFailure",
    "RegistryInitializer",
    "ScopeMappings",
    "Span",
    "TextRun",
    "__version__",
    "build_registry",
    "get_version",
    "highlight_html",
    "highlight_markdown",
    "highlight_text",
    "validate_config",
]
