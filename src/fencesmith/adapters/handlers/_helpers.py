"""Internal helpers shared across handler modules."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, cast

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from fencesmith.core.highlighter import Span, TextRun


def gather_classes(value: Any) -> list[str]:
    """Return a list of classes extracted from a BeautifulSoup attribute."""
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        return [cast(str, item) for item in value if isinstance(item, str)]
    return []


def coerce_attribute(value: Any) -> str | None:
    """Normalise a BeautifulSoup attribute value to a string when possible."""
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        items = [item for item in value if isinstance(item, str)]
        return " ".join(items) if items else None
    return None


def owner_document(element: Tag, fallback: Any = None) -> BeautifulSoup:
    """Return the BeautifulSoup object owning ``element``."""
    if isinstance(fallback, BeautifulSoup):
        return fallback
    current: Any = element
    while current is not None:
        if isinstance(current, BeautifulSoup):
            return current
        current = current.parent
    return BeautifulSoup("", "html.parser")


def span_to_tag(span: Span, soup: BeautifulSoup, *, tag_name: str = "span") -> Tag:
    """Convert a classified span tree into BeautifulSoup elements."""
    element = soup.new_tag(tag_name)
    if span.classes:
        element["class"] = list(span.classes)
    for child in span.children:
        if isinstance(child, TextRun):
            element.append(NavigableString(child.text))
        else:
            element.append(span_to_tag(child, soup, tag_name=tag_name))
    return element
