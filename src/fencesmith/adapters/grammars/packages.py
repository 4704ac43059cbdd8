"""Load grammar mappings from importable packages.

Package identifiers take the form ``module`` or ``module:attribute``.

`module:attribute`
: the attribute is either a mapping of language keys to grammars or a callable
  (sync or async) returning one.

`module`
: resolved, in order, through a ``load_grammars`` callable, a ``GRAMMARS``
  mapping, or YAML grammar descriptors stored in the package's ``grammars/``
  resource directory.

Descriptors are small YAML documents::

    name: JavaScript
    type: tree-sitter
    parser: tree_sitter_javascript
    keys: [js, javascript]
    scopes:
      program: source.js
      '"let", "const"': storage.type

Imports and file reads block, so they run in a worker thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from functools import partial
import importlib
from importlib import resources
import inspect
import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
import yaml

from fencesmith.core.exceptions import GrammarPackageError
from fencesmith.core.grammar import Grammar


if TYPE_CHECKING:  # pragma: no cover - typing only
    from importlib.resources.abc import Traversable


logger = logging.getLogger(__name__)

_DESCRIPTOR_SUFFIXES = (".yml", ".yaml")


class GrammarDescriptor(BaseModel):
    """Declarative description of a grammar shipped as package data."""

    model_config = ConfigDict(extra="forbid")

    name: str
    type: Literal["tree-sitter", "pygments"] = "tree-sitter"
    keys: list[str] = Field(default_factory=list)
    parser: str | None = None
    function: str = "language"
    lexer: str | None = None
    scopes: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_backend(self) -> GrammarDescriptor:
        """Require the backend-specific field."""
        if self.type == "tree-sitter" and not self.parser:
            raise ValueError("tree-sitter descriptors require a 'parser' module")
        if self.type == "pygments" and not self.lexer:
            raise ValueError("pygments descriptors require a 'lexer' alias")
        return self

    def build(self) -> Grammar:
        """Instantiate the grammar described by this descriptor."""
        if self.type == "pygments":
            from .pygments import PygmentsGrammar

            return PygmentsGrammar.for_language(str(self.lexer))

        from .treesitter import TreeSitterGrammar

        return TreeSitterGrammar.from_module(
            str(self.parser), self.scopes, function=self.function, name=self.name
        )


def grammars_from_descriptor(data: Any, *, default_key: str) -> dict[str, Grammar]:
    """Build the grammar described by ``data`` and key it by every declared key."""
    if not isinstance(data, Mapping):
        raise ValueError("descriptor must be a mapping")
    descriptor = GrammarDescriptor.model_validate(dict(data))
    grammar = descriptor.build()
    keys = descriptor.keys or [default_key]
    return dict.fromkeys(keys, grammar)


def load_descriptor_directory(directory: Traversable) -> dict[str, Grammar]:
    """Load every YAML grammar descriptor found in ``directory``."""
    grammars: dict[str, Grammar] = {}
    entries = sorted(directory.iterdir(), key=lambda item: item.name)
    for entry in entries:
        if not entry.is_file() or not entry.name.endswith(_DESCRIPTOR_SUFFIXES):
            continue
        stem = entry.name.rsplit(".", 1)[0]
        try:
            data = yaml.safe_load(entry.read_text(encoding="utf-8"))
            grammars.update(grammars_from_descriptor(data, default_key=stem))
        except (yaml.YAMLError, ValidationError, ValueError) as exc:
            raise ValueError(f"invalid grammar descriptor '{entry.name}': {exc}") from exc
        logger.debug("loaded grammar descriptor %s", entry.name)
    return grammars


def _resolve_target(identifier: str) -> Any:
    module_name, _, attribute = identifier.partition(":")
    module_name = module_name.strip()
    attribute = attribute.strip()
    if not module_name:
        raise GrammarPackageError(identifier, "missing module name")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise GrammarPackageError(identifier, f"cannot import '{module_name}': {exc}") from exc

    if attribute:
        try:
            return getattr(module, attribute)
        except AttributeError as exc:
            raise GrammarPackageError(
                identifier, f"module '{module_name}' has no attribute '{attribute}'"
            ) from exc

    loader = getattr(module, "load_grammars", None)
    if callable(loader):
        return loader
    grammars = getattr(module, "GRAMMARS", None)
    if grammars is not None:
        return grammars

    if getattr(module, "__path__", None) is not None:
        directory = resources.files(module_name) / "grammars"
        if directory.is_dir():
            return partial(load_descriptor_directory, directory)

    raise GrammarPackageError(
        identifier, "expected load_grammars(), GRAMMARS, or a grammars/ directory"
    )


def _coerce_grammars(identifier: str, value: Any) -> dict[str, Grammar]:
    if not isinstance(value, Mapping):
        raise GrammarPackageError(
            identifier, f"expected a mapping of grammars, got {type(value).__name__}"
        )
    grammars: dict[str, Grammar] = {}
    for key, grammar in value.items():
        if not isinstance(key, str) or not key:
            raise GrammarPackageError(identifier, f"invalid language key {key!r}")
        if not isinstance(grammar, Grammar):
            raise GrammarPackageError(
                identifier, f"entry '{key}' is not a grammar ({type(grammar).__name__})"
            )
        grammars[key] = grammar
    return grammars


async def load_grammar_package(identifier: str) -> dict[str, Grammar]:
    """Load the grammars exposed by the package ``identifier``."""
    target = await asyncio.to_thread(_resolve_target, identifier)

    try:
        if inspect.iscoroutinefunction(target):
            result = await target()
        elif callable(target):
            result = await asyncio.to_thread(target)
            if inspect.isawaitable(result):
                result = await result
        else:
            result = target
    except GrammarPackageError:
        raise
    except Exception as exc:
        raise GrammarPackageError(identifier, str(exc)) from exc

    grammars = _coerce_grammars(identifier, result)
    logger.debug("grammar package %s provided %d languages", identifier, len(grammars))
    return grammars


__all__ = [
    "GrammarDescriptor",
    "grammars_from_descriptor",
    "load_descriptor_directory",
    "load_grammar_package",
]
