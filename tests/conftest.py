"""Shared fixtures for shotsort tests."""

from __future__ import annotations

from pathlib import PurePath
from typing import Callable, Optional, Sequence

import pytest

from shotsort.organization import MoveResult
from shotsort.proposals import Proposal


class FakeFileSystem:
    """In-memory stand-in for the existence and move capabilities."""

    def __init__(self, files: Sequence[str] = ()) -> None:
        self.files: set[str] = set(files)
        self.exists_calls: list[list[str]] = []
        self.moves: list[tuple[str, str, bool]] = []
        self.failures: dict[str, Exception] = {}
        self.on_move: Optional[Callable[[str, str], None]] = None

    def paths_exist(self, paths: Sequence[str]) -> set[str]:
        self.exists_calls.append(list(paths))
        return {path for path in paths if path in self.files}

    def move(self, source: str, destination: str, root: str, overwrite: bool) -> MoveResult:
        if self.on_move is not None:
            self.on_move(source, destination)
        if source in self.failures:
            raise self.failures[source]
        if source not in self.files:
            raise FileNotFoundError(f"Source file no longer exists: {source}")

        final = destination
        if destination in self.files and not overwrite:
            path = PurePath(destination)
            counter = 1
            final = str(path.with_name(f"{path.stem}-{counter}{path.suffix}"))
            while final in self.files:
                counter += 1
                final = str(path.with_name(f"{path.stem}-{counter}{path.suffix}"))

        self.files.discard(source)
        self.files.add(final)
        self.moves.append((source, final, overwrite))
        return MoveResult(final_path=final, renamed=final != destination)


def make_proposal(
    proposal_id: str,
    *,
    category: str = "Work",
    name: Optional[str] = None,
    directory: str = "/shots",
    original_name: Optional[str] = None,
    selected: bool = True,
) -> Proposal:
    """Return a proposal for ``<directory>/<original_name>``."""
    original = original_name or f"{proposal_id}.png"
    return Proposal(
        id=proposal_id,
        original_path=f"{directory}/{original}",
        original_name=original,
        proposed_name=name if name is not None else f"{proposal_id}-renamed.png",
        proposed_category=category,
        selected=selected,
    )


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem()
