"""Detect destination conflicts before any file is moved."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Collection, Iterable, Optional

from shotsort.config.models import OrganizationOptions
from shotsort.proposals.models import Proposal

from .models import ALREADY_EXISTS, DUPLICATE_DESTINATION, ConflictEntry
from .paths import PlannedDestination, compute_destination

if TYPE_CHECKING:
    from .filesystem import PathExistenceChecker

LOGGER = logging.getLogger(__name__)


class ConflictDetector:
    """Compute the conflicts that block a batch move.

    Every call to :meth:`detect` starts from scratch; no state survives between
    passes, so the result always reflects the proposals it was given.
    """

    def __init__(
        self,
        checker: "PathExistenceChecker",
        options: Optional[OrganizationOptions] = None,
    ) -> None:
        self._checker = checker
        self._options = options or OrganizationOptions()

    def detect(
        self,
        proposals: Iterable[Proposal],
        overwrite_ids: Collection[str] = (),
    ) -> list[ConflictEntry]:
        """Return one entry per selected proposal whose destination is unsafe.

        A destination is unsafe when more than one selected proposal maps to it
        (paths compared case-insensitively), or when it already exists and the
        proposal is not marked for overwrite.
        The existence check is issued once for all distinct destinations.

        Args:
            proposals: Proposals to check; unselected ones are ignored.
            overwrite_ids: Ids of proposals allowed to replace an existing file.

        Returns:
            list[ConflictEntry]: Conflicts in proposal order, each with at least one reason.
        """
        planned: list[tuple[Proposal, PlannedDestination]] = [
            (proposal, compute_destination(proposal, self._options))
            for proposal in proposals
            if proposal.selected
        ]
        if not planned:
            return []

        claims: dict[str, int] = defaultdict(int)
        for _, destination in planned:
            claims[destination.path.casefold()] += 1

        distinct = list(dict.fromkeys(destination.path for _, destination in planned))
        existing = set(self._checker.paths_exist(distinct))

        conflicts: list[ConflictEntry] = []
        for proposal, destination in planned:
            reasons: list[str] = []
            if claims[destination.path.casefold()] > 1:
                reasons.append(DUPLICATE_DESTINATION)
            if destination.path in existing and proposal.id not in overwrite_ids:
                reasons.append(ALREADY_EXISTS)
            if not reasons:
                continue
            conflicts.append(
                ConflictEntry(
                    id=proposal.id,
                    original_name=proposal.original_name,
                    proposed_name=proposal.proposed_name,
                    proposed_category=proposal.proposed_category,
                    destination=destination.path,
                    reasons=tuple(reasons),
                )
            )

        if conflicts:
            LOGGER.info("Detected %d destination conflict(s).", len(conflicts))
        return conflicts


__all__ = ["ConflictDetector"]
