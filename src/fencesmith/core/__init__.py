"""Core highlighting pipeline: registry, initializer, highlighter, rules."""

from __future__ import annotations

from .config import HighlightConfig, validate_config
from .context import CodeBlock, HighlightContext, HighlightedBlock
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .exceptions import (
    ConfigurationError,
    FencesmithError,
    GrammarPackageError,
    InitializationError,
    ParseFailure,
)
from .grammar import Grammar, ScopeMappings, ScopeResolver, SyntaxNode
from .highlighter import ClassPolicy, Span, TextRun, highlight_text, scope_to_classes
from .initializer import PackageLoader, RegistryInitializer
from .registry import GrammarRegistry, build_registry
from .rules import RenderEngine, renders


__all__ = [
    "ClassPolicy",
    "CodeBlock",
    "ConfigurationError",
    "DiagnosticEmitter",
    "FencesmithError",
    "Grammar",
    "GrammarPackageError",
    "GrammarRegistry",
    "HighlightConfig",
    "HighlightContext",
    "HighlightedBlock",
    "InitializationError",
    "LoggingEmitter",
    "NullEmitter",
    "PackageLoader",
    "ParseFailure",
    "RegistryInitializer",
    "RenderEngine",
    "ScopeMappings",
    "ScopeResolver",
    "Span",
    "SyntaxNode",
    "TextRun",
    "build_registry",
    "highlight_text",
    "renders",
    "scope_to_classes",
    "validate_config",
]
