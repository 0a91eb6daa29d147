"""Execute batched moves and reverse them."""

from __future__ import annotations

import logging
import threading
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Optional

from shotsort.config.models import OrganizationOptions
from shotsort.proposals.models import Proposal
from shotsort.proposals.store import ProposalStore

from .errors import ExecutionInProgressError, UndoInProgressError
from .filesystem import FileMover
from .models import MoveBatch, MoveRecord
from .paths import compute_destination

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ExecutionReport:
    """Outcome of one forward execution.

    Attributes:
        batch: Records of the moves that succeeded.
        errors: Failure messages keyed by proposal id.
        attempted: Number of proposals the executor tried to move.
    """

    batch: MoveBatch
    errors: dict[str, str] = field(default_factory=dict)
    attempted: int = 0

    @property
    def moved_count(self) -> int:
        return len(self.batch.records)

    @property
    def failed_count(self) -> int:
        return len(self.errors)


@dataclass(slots=True)
class UndoReport:
    """Outcome of one undo attempt.

    Attributes:
        restored: Proposals reinstated into the store, in batch order.
        errors: Failure messages keyed by proposal id.
        remaining: Records still held by the batch afterwards.
    """

    restored: list[Proposal] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    remaining: int = 0


class MoveExecutor:
    """Apply selected proposals through a :class:`FileMover`, with undo support.

    Only one execution or undo may run at a time; a second call made while one
    is in flight is rejected instead of queued.
    """

    def __init__(self, mover: FileMover, options: Optional[OrganizationOptions] = None) -> None:
        self._mover = mover
        self._options = options or OrganizationOptions()
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        """Return whether an execution or undo is currently running."""
        return self._lock.locked()

    def execute(
        self,
        store: ProposalStore,
        root: str,
        overwrite_ids: Collection[str] = (),
    ) -> ExecutionReport:
        """Move every selected proposal of ``store`` to its computed destination.

        Moves are independent. A failing proposal stays in the store and its
        error is reported; every successful proposal is removed from the store
        and recorded in the returned batch.

        Args:
            store: Store holding the proposals; mutated in place.
            root: Directory the moves are confined to.
            overwrite_ids: Ids of proposals allowed to replace an existing file.

        Returns:
            ExecutionReport: The new batch and per-proposal errors.

        Raises:
            ExecutionInProgressError: If another execution or undo is running.
        """
        if not self._lock.acquire(blocking=False):
            raise ExecutionInProgressError("A move batch or undo is already in progress.")
        try:
            selected = store.selected()
            report = ExecutionReport(batch=MoveBatch(root=root), attempted=len(selected))
            for proposal in selected:
                destination = compute_destination(proposal, self._options)
                snapshot = proposal.model_copy(
                    update={
                        "proposed_name": destination.name,
                        "proposed_category": destination.category,
                    }
                )
                try:
                    result = self._mover.move(
                        proposal.original_path,
                        destination.path,
                        root,
                        proposal.id in overwrite_ids,
                    )
                except Exception as exc:
                    LOGGER.warning("Failed to move %s: %s", proposal.original_path, exc)
                    report.errors[proposal.id] = str(exc) or type(exc).__name__
                    continue

                report.batch.records.append(
                    MoveRecord(
                        proposal=snapshot,
                        moved_path=result.final_path,
                        renamed=result.renamed,
                    )
                )
                store.remove(proposal.id)
                LOGGER.debug("Moved %s -> %s", proposal.original_path, result.final_path)

            LOGGER.info(
                "Moved %d of %d selected file(s).", report.moved_count, report.attempted
            )
            return report
        finally:
            self._lock.release()

    def undo(self, batch: Optional[MoveBatch], store: ProposalStore) -> UndoReport:
        """Move the files of ``batch`` back to their original paths.

        Records are reversed last-moved first. Each reversed record leaves the
        batch and its proposal is put back at the front of the store; records
        that fail stay in the batch so the undo can be retried.

        Args:
            batch: Batch to reverse; mutated in place. ``None`` or an empty batch
                is a no-op.
            store: Store receiving the reinstated proposals.

        Returns:
            UndoReport: Reinstated proposals and per-record errors.

        Raises:
            UndoInProgressError: If another undo or execution is running.
        """
        if not self._lock.acquire(blocking=False):
            raise UndoInProgressError("An undo or move batch is already in progress.")
        try:
            report = UndoReport()
            if batch is None or batch.is_empty:
                return report

            reversed_records: set[int] = set()
            restored: dict[int, Proposal] = {}
            for index in range(len(batch.records) - 1, -1, -1):
                record = batch.records[index]
                original_path = record.proposal.original_path
                try:
                    result = self._mover.move(record.moved_path, original_path, batch.root, False)
                except Exception as exc:
                    LOGGER.warning("Failed to restore %s: %s", record.moved_path, exc)
                    report.errors[record.proposal.id] = str(exc) or type(exc).__name__
                    continue

                proposal = record.proposal
                if result.final_path != original_path:
                    LOGGER.warning(
                        "Restored %s to %s because %s is occupied.",
                        record.moved_path,
                        result.final_path,
                        original_path,
                    )
                    proposal = proposal.model_copy(
                        update={
                            "original_path": result.final_path,
                            "original_name": PurePath(result.final_path).name,
                        }
                    )
                reversed_records.add(index)
                restored[index] = proposal

            batch.records = [
                record for index, record in enumerate(batch.records) if index not in reversed_records
            ]
            report.restored = [restored[index] for index in sorted(restored)]
            report.remaining = len(batch.records)
            store.prepend(report.restored)
            LOGGER.info(
                "Restored %d file(s); %d remain in the batch.",
                len(report.restored),
                report.remaining,
            )
            return report
        finally:
            self._lock.release()


__all__ = ["ExecutionReport", "MoveExecutor", "UndoReport"]
