"""Organization engine errors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import ConflictEntry


class OrganizationError(Exception):
    """Base exception for planning and executing moves."""


class OptimizerStateError(OrganizationError):
    """Raised when the folder optimizer is re-entered while it is running."""


class ConflictsPendingError(OrganizationError):
    """Raised when execution is requested while destination conflicts remain."""

    def __init__(self, conflicts: Sequence["ConflictEntry"]) -> None:
        self.conflicts = list(conflicts)
        count = len(self.conflicts)
        super().__init__(
            f"{count} conflict{'s' if count != 1 else ''} must be resolved before moving files."
        )


class ExecutorBusyError(OrganizationError):
    """Raised when the executor is asked to start while another run is in flight."""


class ExecutionInProgressError(ExecutorBusyError):
    """Raised when a batch is executed while another execution or undo is running."""


class UndoInProgressError(ExecutorBusyError):
    """Raised when undo is invoked while another undo or execution is running."""


class MoveError(OrganizationError):
    """Raised by the local mover when a move cannot be attempted safely."""
