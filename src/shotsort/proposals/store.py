"""In-memory store of active proposals."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from .categories import CATEGORY_SEPARATOR, format_category, split_category, top_level
from .errors import ProposalNotFoundError
from .events import ClassificationEvent, FailedEvent, ProposedEvent, SkippedEvent
from .models import Proposal

LOGGER = logging.getLogger(__name__)


class ProposalStore:
    """Own the active proposals of a review session and their selection state.

    Proposals keep their insertion order. Every read accessor returns copies of
    the container (never of the proposals themselves), so callers iterating a
    snapshot are not affected by later mutations of the store.
    """

    def __init__(
        self,
        proposals: Iterable[Proposal] | None = None,
        *,
        format_categories: bool = False,
    ) -> None:
        """Initialize the store.

        Args:
            proposals: Optional initial proposals, kept in order.
            format_categories: Whether categories arriving through ``ingest`` are
                normalized with :func:`format_category`.
        """
        self._proposals: list[Proposal] = []
        self._format_categories = format_categories
        for proposal in proposals or []:
            self.add(proposal)

    # ------------------------------------------------------------------ #
    # Read access                                                        #
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._proposals)

    def __iter__(self) -> Iterator[Proposal]:
        return iter(list(self._proposals))

    def __contains__(self, proposal_id: object) -> bool:
        return any(proposal.id == proposal_id for proposal in self._proposals)

    @property
    def proposals(self) -> list[Proposal]:
        """Return the active proposals in store order."""
        return list(self._proposals)

    def get(self, proposal_id: str) -> Proposal:
        """Return the proposal with ``proposal_id``.

        Raises:
            ProposalNotFoundError: If no active proposal has that id.
        """
        return self._proposals[self._index(proposal_id)]

    def selected(self) -> list[Proposal]:
        """Return the selected proposals in store order."""
        return [proposal for proposal in self._proposals if proposal.selected]

    def selected_count(self) -> int:
        return sum(1 for proposal in self._proposals if proposal.selected)

    def categories(self) -> list[str]:
        """Return the distinct proposed categories in first-seen order."""
        return list(dict.fromkeys(proposal.proposed_category for proposal in self._proposals))

    # ------------------------------------------------------------------ #
    # Ingestion                                                          #
    # ------------------------------------------------------------------ #

    def add(self, proposal: Proposal) -> None:
        """Append ``proposal``, replacing in place any proposal with the same id."""
        for index, existing in enumerate(self._proposals):
            if existing.id == proposal.id:
                LOGGER.debug("Replacing proposal %s with a newer result.", proposal.id)
                self._proposals[index] = proposal
                return
        self._proposals.append(proposal)

    def ingest(self, event: ClassificationEvent) -> Optional[Proposal]:
        """Apply one classification event to the store.

        Proposed events become selected proposals appended in arrival order.
        Skipped and failed events are logged and otherwise ignored.

        Args:
            event: Event reported by the classification oracle.

        Returns:
            Optional[Proposal]: The stored proposal, or ``None`` for other events.
        """
        if isinstance(event, ProposedEvent):
            proposal = event.to_proposal()
            if self._format_categories:
                proposal.proposed_category = format_category(proposal.proposed_category)
            self.add(proposal)
            LOGGER.debug(
                "Proposal %s: %s -> %s/%s",
                proposal.id,
                proposal.original_name,
                proposal.proposed_category,
                proposal.proposed_name,
            )
            return proposal
        if isinstance(event, SkippedEvent):
            LOGGER.warning("Skipped %s (%d bytes): %s", event.name, event.size, event.reason)
        elif isinstance(event, FailedEvent):
            LOGGER.warning("Classification failed for %s: %s", event.name or "?", event.reason)
        return None

    def ingest_many(self, events: Iterable[ClassificationEvent]) -> list[Proposal]:
        """Ingest ``events`` in order and return the proposals they produced."""
        produced = []
        for event in events:
            proposal = self.ingest(event)
            if proposal is not None:
                produced.append(proposal)
        return produced

    # ------------------------------------------------------------------ #
    # Edits                                                              #
    # ------------------------------------------------------------------ #

    def edit(
        self,
        proposal_id: str,
        *,
        name: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Proposal:
        """Update the proposed name and/or category of one proposal."""
        proposal = self.get(proposal_id)
        if name is not None:
            proposal.proposed_name = name
        if category is not None:
            proposal.proposed_category = category
        return proposal

    def set_selected(self, proposal_id: str, selected: bool) -> Proposal:
        proposal = self.get(proposal_id)
        proposal.selected = selected
        return proposal

    def toggle_selected(self, proposal_id: str) -> Proposal:
        proposal = self.get(proposal_id)
        proposal.selected = not proposal.selected
        return proposal

    def select_all(self) -> None:
        for proposal in self._proposals:
            proposal.selected = True

    def deselect_all(self) -> None:
        for proposal in self._proposals:
            proposal.selected = False

    def select_category(self, category: str, selected: bool = True) -> int:
        """Set selection for every proposal in ``category`` or one of its subfolders.

        Returns:
            int: Number of proposals affected.
        """
        prefix = category.rstrip(CATEGORY_SEPARATOR)
        affected = 0
        for proposal in self._proposals:
            current = proposal.proposed_category
            if current == prefix or current.startswith(prefix + CATEGORY_SEPARATOR):
                proposal.selected = selected
                affected += 1
        return affected

    def apply_subcategories(self, subcategories: Mapping[str, str]) -> list[Proposal]:
        """Move proposals into a more specific subfolder of their top-level category.

        Args:
            subcategories: Mapping of proposal id to the subcategory suggested for it.
                Unknown ids and subcategories that format to nothing are ignored.

        Returns:
            list[Proposal]: Proposals whose category changed.
        """
        changed = []
        for proposal_id, subcategory in subcategories.items():
            if proposal_id not in self:
                LOGGER.debug("Ignoring subcategory for unknown proposal %s.", proposal_id)
                continue
            formatted = format_category(subcategory)
            if not formatted:
                continue
            proposal = self.get(proposal_id)
            parent = top_level(proposal.proposed_category)
            target = CATEGORY_SEPARATOR.join([*split_category(parent), *split_category(formatted)])
            if target != proposal.proposed_category:
                proposal.proposed_category = target
                changed.append(proposal)
        return changed

    def replace_all(self, proposals: Sequence[Proposal]) -> None:
        """Swap in a new proposal list, e.g. the output of the folder optimizer."""
        self._proposals = list(proposals)

    def remove(self, proposal_id: str) -> Proposal:
        """Remove and return the proposal with ``proposal_id``."""
        return self._proposals.pop(self._index(proposal_id))

    def prepend(self, proposals: Sequence[Proposal]) -> None:
        """Insert ``proposals`` at the front of the store, keeping their order."""
        incoming = {proposal.id for proposal in proposals}
        remaining = [proposal for proposal in self._proposals if proposal.id not in incoming]
        self._proposals = [*proposals, *remaining]

    def _index(self, proposal_id: str) -> int:
        for index, proposal in enumerate(self._proposals):
            if proposal.id == proposal_id:
                return index
        raise ProposalNotFoundError(proposal_id)


__all__ = ["ProposalStore"]
