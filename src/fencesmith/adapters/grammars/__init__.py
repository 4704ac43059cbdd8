"""Grammar sources and package loading."""

from __future__ import annotations

from .packages import GrammarDescriptor, load_descriptor_directory, load_grammar_package


__all__ = ["GrammarDescriptor", "load_descriptor_directory", "load_grammar_package"]
