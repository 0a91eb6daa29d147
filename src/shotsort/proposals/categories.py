"""Helpers for slash-delimited category paths."""

from __future__ import annotations

import re

CATEGORY_SEPARATOR = "/"

_WORD_BREAK = re.compile(r"[_\-\s]+")


def split_category(category: str) -> list[str]:
    """Return the non-empty segments of a category path."""
    return [segment for segment in category.split(CATEGORY_SEPARATOR) if segment]


def top_level(category: str) -> str:
    """Return the first segment of ``category`` (the text before any ``/``)."""
    return category.split(CATEGORY_SEPARATOR, 1)[0]


def format_category(category: str) -> str:
    """Normalize oracle output into title-cased, underscore-joined segments.

    ``"bank-statements/q1"`` becomes ``"Bank_Statements/Q1"``. Segments that hold
    no words are dropped.

    Args:
        category: Raw category string.

    Returns:
        str: Formatted category, possibly empty.
    """
    formatted: list[str] = []
    for segment in category.split(CATEGORY_SEPARATOR):
        words = [word for word in _WORD_BREAK.split(segment) if word]
        if words:
            formatted.append("_".join(word[:1].upper() + word[1:].lower() for word in words))
    return CATEGORY_SEPARATOR.join(formatted)


__all__ = ["CATEGORY_SEPARATOR", "split_category", "top_level", "format_category"]
