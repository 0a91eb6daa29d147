"""Review session: the single owner of proposals, overwrite flags, and the undo batch."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from shotsort.config.models import OrganizationOptions
from shotsort.organization import (
    CategoryNode,
    ConflictDetector,
    ConflictEntry,
    ConflictsPendingError,
    ExecutionReport,
    FileMover,
    LocalFileSystem,
    MoveBatch,
    MoveExecutor,
    OptimizerPhase,
    OptimizerStateError,
    PathExistenceChecker,
    UndoReport,
    build_tree_from_proposals,
    categories_changed,
    optimize_folder_structure,
)
from shotsort.proposals import ClassificationEvent, Proposal, ProposalStore

LOGGER = logging.getLogger(__name__)


class ReviewSession:
    """Coordinate one scan's review from classification events to undo.

    All state mutation goes through the session: it owns the proposal store, the
    optimizer phase, the overwrite flags, the per-proposal error maps, and the
    one undoable move batch. Derived views (category tree, conflicts) are
    recomputed on every request.
    """

    def __init__(
        self,
        checker: PathExistenceChecker,
        mover: FileMover,
        options: Optional[OrganizationOptions] = None,
        *,
        store: Optional[ProposalStore] = None,
    ) -> None:
        """Initialize the session.

        Args:
            checker: Capability answering which paths exist.
            mover: Capability moving files.
            options: Organization settings; defaults apply when omitted.
            store: Optional pre-populated store.
        """
        self._options = options or OrganizationOptions()
        self._store = store or ProposalStore(format_categories=self._options.format_categories)
        self._detector = ConflictDetector(checker, self._options)
        self._executor = MoveExecutor(mover, self._options)
        self._phase = OptimizerPhase.NOT_STARTED
        self._overwrite_ids: set[str] = set()
        self._batch: Optional[MoveBatch] = None
        self._move_errors: dict[str, str] = {}
        self._undo_errors: dict[str, str] = {}

    @classmethod
    def local(cls, options: Optional[OrganizationOptions] = None) -> "ReviewSession":
        """Return a session operating on the local filesystem."""
        settings = options or OrganizationOptions()
        filesystem = LocalFileSystem(conflict_resolution=settings.conflict_resolution)
        return cls(filesystem, filesystem, settings)

    # ------------------------------------------------------------------ #
    # State accessors                                                    #
    # ------------------------------------------------------------------ #

    @property
    def store(self) -> ProposalStore:
        return self._store

    @property
    def phase(self) -> OptimizerPhase:
        return self._phase

    @property
    def overwrite_ids(self) -> frozenset[str]:
        return frozenset(self._overwrite_ids)

    @property
    def batch(self) -> Optional[MoveBatch]:
        """Return the batch that the next :meth:`undo` would reverse."""
        return self._batch

    @property
    def move_errors(self) -> dict[str, str]:
        """Return move failures of the last execution, keyed by proposal id."""
        return dict(self._move_errors)

    @property
    def undo_errors(self) -> dict[str, str]:
        """Return failures of the last undo, keyed by proposal id."""
        return dict(self._undo_errors)

    # ------------------------------------------------------------------ #
    # Classification and review                                          #
    # ------------------------------------------------------------------ #

    def ingest(self, event: ClassificationEvent) -> Optional[Proposal]:
        return self._store.ingest(event)

    def ingest_many(self, events: Iterable[ClassificationEvent]) -> list[Proposal]:
        return self._store.ingest_many(events)

    def category_tree(self) -> list[CategoryNode]:
        """Build the folder tree for the current proposals."""
        return build_tree_from_proposals(
            self._store, fallback=self._options.fallback_category
        )

    def optimize(self) -> bool:
        """Run the folder shape optimizer once for this session.

        Returns:
            bool: Whether any category changed. Calls after the first run are
            no-ops returning ``False``.

        Raises:
            OptimizerStateError: If the optimizer is already running.
        """
        if self._phase is OptimizerPhase.OPTIMIZING:
            raise OptimizerStateError("Folder optimization is already running.")
        if self._phase is OptimizerPhase.OPTIMIZED:
            return False

        self._phase = OptimizerPhase.OPTIMIZING
        try:
            before = self._store.proposals
            after = optimize_folder_structure(before, self._options)
            changed = categories_changed(before, after)
            if changed:
                self._store.replace_all(after)
        except Exception:
            self._phase = OptimizerPhase.NOT_STARTED
            raise
        self._phase = OptimizerPhase.OPTIMIZED
        return changed

    def edit(
        self,
        proposal_id: str,
        *,
        name: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Proposal:
        """Edit a proposal; a changed name or category drops its overwrite flag."""
        proposal = self._store.get(proposal_id)
        if (name is not None and name != proposal.proposed_name) or (
            category is not None and category != proposal.proposed_category
        ):
            self._overwrite_ids.discard(proposal_id)
        return self._store.edit(proposal_id, name=name, category=category)

    # ------------------------------------------------------------------ #
    # Conflicts                                                          #
    # ------------------------------------------------------------------ #

    def detect_conflicts(self) -> list[ConflictEntry]:
        """Run a fresh conflict detection pass over the selected proposals."""
        return self._detector.detect(self._store, self._overwrite_ids)

    def rename(self, proposal_id: str, name: str) -> list[ConflictEntry]:
        """Give a conflicting proposal a new name and re-run detection."""
        self._store.edit(proposal_id, name=name)
        self._overwrite_ids.discard(proposal_id)
        return self.detect_conflicts()

    def skip(self, proposal_id: str) -> list[ConflictEntry]:
        """Remove a proposal from the batch and re-run detection."""
        self._store.set_selected(proposal_id, False)
        self._overwrite_ids.discard(proposal_id)
        return self.detect_conflicts()

    def toggle_overwrite(self, proposal_id: str) -> list[ConflictEntry]:
        """Flip the overwrite flag of one proposal and re-run detection."""
        self._store.get(proposal_id)
        if proposal_id in self._overwrite_ids:
            self._overwrite_ids.discard(proposal_id)
        else:
            self._overwrite_ids.add(proposal_id)
        return self.detect_conflicts()

    # ------------------------------------------------------------------ #
    # Execution and undo                                                 #
    # ------------------------------------------------------------------ #

    def accept(self, root: str) -> ExecutionReport:
        """Move every selected proposal after a fresh, clean conflict pass.

        A run with at least one successful move replaces the undoable batch.

        Args:
            root: Directory the moves are confined to.

        Returns:
            ExecutionReport: The executed batch and per-proposal failures.

        Raises:
            ConflictsPendingError: If the fresh detection pass found conflicts.
            ExecutionInProgressError: If another execution or undo is running.
        """
        conflicts = self.detect_conflicts()
        if conflicts:
            raise ConflictsPendingError(conflicts)

        report = self._executor.execute(self._store, root, self._overwrite_ids)
        for record in report.batch.records:
            self._overwrite_ids.discard(record.proposal.id)
            self._move_errors.pop(record.proposal.id, None)
        self._move_errors.update(report.errors)
        if not report.batch.is_empty:
            self._batch = report.batch
            self._undo_errors = {}
        return report

    def undo(self) -> UndoReport:
        """Reverse the current batch; failed records stay for a retry.

        Raises:
            UndoInProgressError: If another undo or execution is running.
        """
        report = self._executor.undo(self._batch, self._store)
        self._undo_errors = dict(report.errors)
        return report

    def restore_batch(self, batch: MoveBatch) -> None:
        """Adopt a previously persisted batch as the undoable batch."""
        self._batch = batch
        self._undo_errors = {}

    def dismiss_batch(self) -> None:
        """Forget the undoable batch."""
        self._batch = None
        self._undo_errors = {}


__all__ = ["ReviewSession"]
