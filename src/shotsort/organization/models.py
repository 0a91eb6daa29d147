"""Organization data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from shotsort.proposals.models import Proposal

DUPLICATE_DESTINATION = "Duplicate destination"
ALREADY_EXISTS = "File already exists"


class ConflictEntry(BaseModel):
    """A detected problem with one proposal's planned destination.

    Attributes:
        id: Id of the conflicting proposal.
        original_name: Filename before the move.
        proposed_name: Proposed filename as entered (not sanitized).
        proposed_category: Proposed category as entered (not sanitized).
        destination: Full computed destination path.
        reasons: Ordered reason tags; never empty.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    original_name: str
    proposed_name: str
    proposed_category: str
    destination: str
    reasons: Tuple[str, ...] = Field(min_length=1)


class MoveResult(BaseModel):
    """Outcome reported by the move capability for one file.

    Attributes:
        final_path: Path the file ended up at.
        renamed: Whether the capability disambiguated the requested destination.
    """

    final_path: str
    renamed: bool = False


class MoveRecord(BaseModel):
    """The reversible unit of one executed move.

    Attributes:
        proposal: Snapshot of the proposal as moved, with sanitized name and category.
        moved_path: Actual final path of the file.
        renamed: Whether the move capability renamed the file on collision.
    """

    proposal: Proposal
    moved_path: str
    renamed: bool = False


class MoveBatch(BaseModel):
    """Ordered move records executed together and reversible as a unit."""

    root: str
    records: List[MoveRecord] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.records


__all__ = [
    "ALREADY_EXISTS",
    "DUPLICATE_DESTINATION",
    "ConflictEntry",
    "MoveBatch",
    "MoveRecord",
    "MoveResult",
]
