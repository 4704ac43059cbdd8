"""Configuration model used by the highlighting pipeline.

HighlightConfig

`grammars` (`dict[str, Grammar]`)
: Explicit mapping from language keys to prepared grammars. Entries always take
  precedence over grammars loaded from packages.

`grammar_packages` (`list[str]`)
: Ordered package identifiers (`module` or `module:attribute`) to load grammars
  from. Mutually exclusive with a non-empty `grammars` mapping.

`class_whitelist` (`frozenset[str] | None`)
: When set, only these class names survive in highlighted output. Use it to
  shrink the markup when only a handful of classes are styled.

`package_precedence` (`"last" | "first"`)
: Which package wins when several packages define the same language key.

`class_style` (`"segments" | "joined"`)
: Derive one class per scope segment (`keyword.control` gives `keyword` and
  `control`) or a single joined class (`keyword-control`).

`class_separator` (`str`)
: Separator used by the `joined` class style.

`class_prefix` (`str`)
: Prefix prepended to every derived class name, e.g. `syntax--`.

`marker_class` (`str`)
: Class added to every highlighted block next to `language-<key>`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigurationError
from .grammar import Grammar


class HighlightConfig(BaseModel):
    """Validated options for a highlighting run."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    grammars: dict[str, Any] = Field(default_factory=dict)
    grammar_packages: list[str] = Field(default_factory=list)
    class_whitelist: frozenset[str] | None = None
    package_precedence: Literal["last", "first"] = "last"
    class_style: Literal["segments", "joined"] = "segments"
    class_separator: str = "-"
    class_prefix: str = ""
    marker_class: str = "tree-sitter"

    @field_validator("grammars")
    @classmethod
    def check_grammars(cls, value: dict[str, Any]) -> dict[str, Any]:
        """Ensure each explicit grammar exposes the grammar capability."""
        for key, grammar in value.items():
            if not key.strip():
                raise ValueError("grammar keys must be non-empty strings")
            if not isinstance(grammar, Grammar):
                raise ValueError(
                    f"grammar '{key}' must provide parse() and scopes, got {type(grammar).__name__}"
                )
        return value

    @field_validator("grammar_packages")
    @classmethod
    def check_packages(cls, value: list[str]) -> list[str]:
        """Strip package identifiers and reject blank entries."""
        cleaned = [item.strip() for item in value]
        if any(not item for item in cleaned):
            raise ValueError("grammar package identifiers must be non-empty")
        return cleaned

    @field_validator("marker_class")
    @classmethod
    def check_marker(cls, value: str) -> str:
        """Reject marker classes that would not survive as a single HTML class."""
        if not value or any(char.isspace() for char in value):
            raise ValueError("marker_class must be a single non-empty class name")
        return value

    @model_validator(mode="after")
    def check_sources(self) -> HighlightConfig:
        """Reject configurations mixing explicit grammars and grammar packages."""
        if self.grammars and self.grammar_packages:
            raise ValueError("grammars or grammar_packages must be specified, not both")
        return self


def validate_config(options: HighlightConfig | Mapping[str, Any] | None) -> HighlightConfig:
    """Return a validated configuration or raise :class:`ConfigurationError`."""
    if options is None:
        raise ConfigurationError("Missing options")
    if isinstance(options, HighlightConfig):
        return options
    if not isinstance(options, Mapping):
        raise ConfigurationError(
            f"Invalid options: expected a mapping, got {type(options).__name__}"
        )
    try:
        return HighlightConfig.model_validate(dict(options))
    except ValidationError as exc:
        details = "; ".join(_format_error(error) for error in exc.errors())
        raise ConfigurationError(f"Invalid options: {details}") from exc


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    message = message.removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


__all__ = ["HighlightConfig", "validate_config"]
