"""Proposal data models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Proposal(BaseModel):
    """One file's pending reorganization intent.

    Attributes:
        id: Identifier stable for the session.
        original_path: Absolute path of the file before any move.
        original_name: Filename of the file before any move.
        proposed_name: Target filename suggested by the oracle or the user.
        proposed_category: Slash-delimited target folder, e.g. ``Finance/Receipts``.
        reasoning: Explanation supplied by the oracle.
        selected: Whether the proposal takes part in conflict detection and moves.
    """

    id: str = Field(frozen=True)
    original_path: str = Field(frozen=True)
    original_name: str = Field(frozen=True)
    proposed_name: str
    proposed_category: str
    reasoning: str = ""
    selected: bool = True


class CategoryCount(BaseModel):
    """Number of proposals assigned to one exact category."""

    total: int = 0
    selected: int = 0


__all__ = ["Proposal", "CategoryCount"]
