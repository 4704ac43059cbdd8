"""Built-in grammar package.

Each YAML file in this package describes one tree-sitter grammar together with
its scope table. List ``fencesmith.grammars`` in ``grammar_packages`` to use
them; the matching ``tree_sitter_*`` binding modules must be importable.
"""

from __future__ import annotations

from importlib import resources

from fencesmith.adapters.grammars.packages import load_descriptor_directory
from fencesmith.core.grammar import Grammar


def load_grammars() -> dict[str, Grammar]:
    """Return the built-in grammars keyed by language."""
    return load_descriptor_directory(resources.files(__name__))


__all__ = ["load_grammars"]
