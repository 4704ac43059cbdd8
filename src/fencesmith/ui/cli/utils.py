"""Auxiliary helpers used by CLI commands."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from fencesmith.core.exceptions import ConfigurationError

from ._options import DEFAULT_GRAMMAR_PACKAGE


MARKDOWN_SUFFIXES = frozenset({".md", ".markdown", ".mdown", ".mkd"})


def split_values(values: Iterable[str] | None) -> list[str]:
    """Flatten repeated and comma-separated option values."""
    result: list[str] = []
    for raw in values or ():
        result.extend(chunk.strip() for chunk in raw.split(",") if chunk.strip())
    return result


def load_config_file(path: Path) -> dict[str, Any]:
    """Read highlighting options from a YAML file."""
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in '{path}': {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping.")
    if "grammars" in payload:
        raise ConfigurationError(
            "Explicit grammars cannot be declared in a configuration file; "
            "use grammar_packages instead."
        )
    return payload


def build_options(
    *,
    config_file: Path | None = None,
    packages: Iterable[str] | None = None,
    whitelist: Iterable[str] | None = None,
    precedence: str | None = None,
    class_style: str | None = None,
) -> dict[str, Any]:
    """Merge configuration file values with command-line overrides."""
    options = load_config_file(config_file) if config_file is not None else {}

    package_list = split_values(packages)
    if package_list:
        options["grammar_packages"] = package_list
    elif not options.get("grammar_packages"):
        options["grammar_packages"] = [DEFAULT_GRAMMAR_PACKAGE]

    classes = split_values(whitelist)
    if classes:
        options["class_whitelist"] = classes
    if precedence is not None:
        options["package_precedence"] = precedence
    if class_style is not None:
        options["class_style"] = class_style
    return options


def is_markdown(path: Path) -> bool:
    """Return whether ``path`` should be rendered through Markdown first."""
    return path.suffix.lower() in MARKDOWN_SUFFIXES


__all__ = ["build_options", "is_markdown", "load_config_file", "split_values"]
