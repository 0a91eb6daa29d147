"""Folder shape heuristics applied once classification completes.

Classification noise tends to produce many single-file folders. Two passes
collapse them: undersized top-level categories are merged into the fallback
category, then undersized subfolders are flattened into their parent. Both are
pure: they return a new list and never modify the proposals they are given.
"""

from __future__ import annotations

import enum
import logging
from collections import Counter
from typing import Optional, Sequence

from shotsort.config.models import OrganizationOptions
from shotsort.proposals.categories import CATEGORY_SEPARATOR, top_level
from shotsort.proposals.models import Proposal

LOGGER = logging.getLogger(__name__)


class OptimizerPhase(enum.Enum):
    """Lifecycle of the once-per-session folder optimization."""

    NOT_STARTED = "not_started"
    OPTIMIZING = "optimizing"
    OPTIMIZED = "optimized"


def merge_small_categories(
    proposals: Sequence[Proposal],
    *,
    minimum: int = 3,
    fallback: str = "Other",
) -> list[Proposal]:
    """Reassign every top-level category holding fewer than ``minimum`` proposals.

    Every proposal whose top-level segment is undersized moves to ``fallback``
    regardless of depth; its subfolder is discarded.

    Args:
        proposals: Proposals to inspect.
        minimum: Smallest proposal count a top-level category may keep.
        fallback: Category receiving merged proposals.

    Returns:
        list[Proposal]: Proposals in the same order, changed ones copied.
    """
    counts = Counter(top_level(proposal.proposed_category) for proposal in proposals)
    small = {category for category, count in counts.items() if count < minimum}
    if small:
        LOGGER.info("Merging small categories into %s: %s", fallback, sorted(small))

    result = []
    for proposal in proposals:
        if top_level(proposal.proposed_category) in small and proposal.proposed_category != fallback:
            proposal = proposal.model_copy(update={"proposed_category": fallback})
        result.append(proposal)
    return result


def flatten_small_subfolders(
    proposals: Sequence[Proposal],
    *,
    minimum: int = 3,
) -> list[Proposal]:
    """Truncate every subfolder holding fewer than ``minimum`` proposals to its top level.

    Args:
        proposals: Proposals to inspect.
        minimum: Smallest proposal count an exact subfolder path may keep.

    Returns:
        list[Proposal]: Proposals in the same order, changed ones copied.
    """
    counts = Counter(
        proposal.proposed_category
        for proposal in proposals
        if CATEGORY_SEPARATOR in proposal.proposed_category
    )
    small = {category for category, count in counts.items() if count < minimum}
    if not small:
        return list(proposals)
    LOGGER.info("Flattening small subfolders: %s", sorted(small))

    result = []
    for proposal in proposals:
        if proposal.proposed_category in small:
            parent = top_level(proposal.proposed_category)
            proposal = proposal.model_copy(update={"proposed_category": parent})
        result.append(proposal)
    return result


def optimize_folder_structure(
    proposals: Sequence[Proposal],
    options: Optional[OrganizationOptions] = None,
) -> list[Proposal]:
    """Apply the merge pass, then the flatten pass, using ``options`` thresholds."""
    settings = options or OrganizationOptions()
    merged = merge_small_categories(
        proposals,
        minimum=settings.merge_threshold,
        fallback=settings.fallback_category,
    )
    return flatten_small_subfolders(merged, minimum=settings.subfolder_threshold)


def categories_changed(before: Sequence[Proposal], after: Sequence[Proposal]) -> bool:
    """Return whether any position of ``after`` carries a different category than ``before``."""
    if len(before) != len(after):
        return True
    return any(
        old.proposed_category != new.proposed_category for old, new in zip(before, after)
    )


__all__ = [
    "OptimizerPhase",
    "categories_changed",
    "flatten_small_subfolders",
    "merge_small_categories",
    "optimize_folder_structure",
]
