"""Filesystem capabilities consumed by the organization engine.

The engine never touches the disk directly. It asks a
:class:`PathExistenceChecker` which destinations exist and a :class:`FileMover`
to move files. :class:`LocalFileSystem` implements both for the local disk.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Protocol, Sequence, runtime_checkable

from .errors import MoveError
from .models import MoveResult

LOGGER = logging.getLogger(__name__)

ConflictStrategy = Literal["append_number", "timestamp"]


@runtime_checkable
class PathExistenceChecker(Protocol):
    """Batch existence lookup."""

    def paths_exist(self, paths: Sequence[str]) -> set[str]:
        """Return exactly the subset of ``paths`` that exist."""
        ...


@runtime_checkable
class FileMover(Protocol):
    """Move one file, possibly disambiguating an occupied destination."""

    def move(self, source: str, destination: str, root: str, overwrite: bool) -> MoveResult:
        """Move ``source`` to ``destination`` and report where the file ended up.

        Raises:
            Exception: A descriptive error when the move cannot be completed.
        """
        ...


class LocalFileSystem:
    """Existence checks and moves on the local disk."""

    def __init__(self, conflict_resolution: ConflictStrategy = "append_number") -> None:
        """Initialize the filesystem adapter.

        Args:
            conflict_resolution: How an occupied destination is renamed when the
                caller did not ask to overwrite it.
        """
        self._strategy = conflict_resolution

    def paths_exist(self, paths: Sequence[str]) -> set[str]:
        return {path for path in paths if _occupied(path)}

    def move(self, source: str, destination: str, root: str, overwrite: bool) -> MoveResult:
        """Move a file that lives below ``root``.

        Missing parent directories of ``destination`` are created. An existing
        destination is replaced only when ``overwrite`` is set; otherwise the
        file is moved to a disambiguated name and ``renamed`` is reported.

        Args:
            source: Current path of the file.
            destination: Requested path.
            root: Directory the move is confined to.
            overwrite: Whether an existing destination may be replaced.

        Returns:
            MoveResult: Final path and whether it differs from the requested one.

        Raises:
            FileNotFoundError: If ``source`` no longer exists.
            MoveError: If ``source`` or ``destination`` lies outside ``root``.
            OSError: If the underlying rename fails.
        """
        source_path = Path(source)
        destination_path = Path(destination)
        root_path = Path(root).resolve()

        if not source_path.exists():
            raise FileNotFoundError(f"Source file no longer exists: {source}")
        self._ensure_within(source_path, root_path)
        self._ensure_within(destination_path.parent, root_path)

        if source_path.resolve() == destination_path.resolve():
            return MoveResult(final_path=str(destination_path), renamed=False)

        destination_path.parent.mkdir(parents=True, exist_ok=True)
        final_path = destination_path
        if _occupied(destination_path) and not overwrite:
            final_path = self._disambiguate(destination_path)
            LOGGER.info("Destination %s exists; moving to %s instead.", destination_path, final_path)

        os.replace(source_path, final_path)
        return MoveResult(final_path=str(final_path), renamed=final_path != destination_path)

    def _disambiguate(self, candidate: Path) -> Path:
        base = candidate
        if self._strategy == "timestamp":
            suffix = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
            base = candidate.with_name(f"{candidate.stem}-{suffix}{candidate.suffix}")
            if not _occupied(base):
                return base

        counter = 1
        final_candidate = base.with_name(f"{base.stem}-{counter}{base.suffix}")
        while _occupied(final_candidate):
            counter += 1
            final_candidate = base.with_name(f"{base.stem}-{counter}{base.suffix}")
        return final_candidate

    @staticmethod
    def _ensure_within(path: Path, root: Path) -> None:
        resolved = path.resolve()
        if resolved != root and root not in resolved.parents:
            raise MoveError(f"Path {path} is outside collection root {root}")


def _occupied(path: str | Path) -> bool:
    """Return whether ``path`` names an entry, dangling symlinks included."""
    return os.path.lexists(path)


__all__ = [
    "ConflictStrategy",
    "FileMover",
    "LocalFileSystem",
    "PathExistenceChecker",
]
