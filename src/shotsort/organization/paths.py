"""Destination computation shared by conflict detection and move execution.

Both the conflict detector and the executor call :func:`compute_destination`;
neither sanitizes names on its own. Keeping one implementation guarantees that
the destinations checked for conflicts are exactly the destinations moved to.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from shotsort.config.models import OrganizationOptions
from shotsort.proposals.categories import CATEGORY_SEPARATOR
from shotsort.proposals.models import Proposal

_RESERVED_CHARACTERS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_WHITESPACE = re.compile(r"\s+")
_DOT_SEGMENTS = {"", ".", ".."}
DEFAULT_FALLBACK_CATEGORY = "Other"
DEFAULT_PLACEHOLDER_NAME = "screenshot"


@dataclass(frozen=True, slots=True)
class PlannedDestination:
    """Sanitized target of one proposal.

    Attributes:
        category: Sanitized category path, ``/``-joined.
        name: Sanitized filename including the required extension.
        path: Full destination path.
    """

    category: str
    name: str
    path: str


def sanitize_segment(value: str) -> str:
    """Strip separators, reserved and control characters from one path segment.

    Returns an empty string for segments that are empty, ``.`` or ``..`` after
    cleaning.
    """
    cleaned = _RESERVED_CHARACTERS.sub("", value)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    if cleaned in _DOT_SEGMENTS:
        return ""
    return cleaned


def sanitize_category(category: str, *, fallback: str = DEFAULT_FALLBACK_CATEGORY) -> str:
    """Return a category path that is safe to create below the source directory.

    The fallback used for empty categories is cleaned the same way, and
    ``"Other"`` stands in when it cleans to nothing as well.
    """
    return _clean_category(category) or _clean_category(fallback) or DEFAULT_FALLBACK_CATEGORY


def _clean_category(category: str) -> str:
    segments = [sanitize_segment(segment) for segment in category.split(CATEGORY_SEPARATOR)]
    return CATEGORY_SEPARATOR.join(segment for segment in segments if segment)


def sanitize_filename(
    name: str,
    *,
    placeholder: str = DEFAULT_PLACEHOLDER_NAME,
    extension: Optional[str] = ".png",
) -> str:
    """Return a filename that is safe to create and carries ``extension``."""
    cleaned = (
        sanitize_segment(name) or sanitize_segment(placeholder) or DEFAULT_PLACEHOLDER_NAME
    )
    if extension:
        suffix = extension if extension.startswith(".") else f".{extension}"
        if not cleaned.lower().endswith(suffix.lower()):
            cleaned = f"{cleaned}{suffix}"
    return cleaned


def compute_destination(
    proposal: Proposal,
    options: Optional[OrganizationOptions] = None,
) -> PlannedDestination:
    """Compute where ``proposal`` would be moved.

    The destination is ``<directory of original>/<category>/<name>``. The result
    depends only on the proposal and the options, so repeated calls agree.

    Args:
        proposal: Proposal to plan.
        options: Naming settings; defaults apply when omitted.

    Returns:
        PlannedDestination: Sanitized category, filename, and full path.
    """
    settings = options or OrganizationOptions()
    category = sanitize_category(proposal.proposed_category, fallback=settings.fallback_category)
    name = sanitize_filename(
        proposal.proposed_name,
        placeholder=settings.placeholder_name,
        extension=settings.required_extension,
    )
    parent = PurePath(proposal.original_path).parent
    path = parent.joinpath(*category.split(CATEGORY_SEPARATOR), name)
    return PlannedDestination(category=category, name=name, path=str(path))


__all__ = [
    "PlannedDestination",
    "compute_destination",
    "sanitize_category",
    "sanitize_filename",
    "sanitize_segment",
]
