"""Adapters binding the core pipeline to documents, grammars, and parsers."""
