"""Persistence of the undo ledger between CLI invocations."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from shotsort.organization.models import MoveBatch

from .errors import MissingStateError, StateError

DEFAULT_STATE_DIRNAME = ".shotsort"
BATCH_FILENAME = "last_batch.json"


class StateRepository:
    """Store the most recent move batch of a collection root."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository with an optional base directory name.

        Args:
            base_dirname: Name of the directory that stores collection state.
        """
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for collection metadata."""
        return self._base_dirname

    def batch_path(self, root: Path) -> Path:
        """Return the ledger file location for ``root``."""
        return self._state_dir(root) / BATCH_FILENAME

    def save_batch(self, root: Path, batch: MoveBatch) -> Path:
        """Persist ``batch`` as the undoable batch of ``root``.

        An empty batch clears the ledger instead.

        Args:
            root: Root path of the collection.
            batch: Batch to persist.

        Returns:
            Path: Location of the ledger file.
        """
        path = self.batch_path(root)
        if batch.is_empty:
            self.clear_batch(root)
            return path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(batch.model_dump_json(indent=2), encoding="utf-8")
        return path

    def load_batch(self, root: Path) -> MoveBatch:
        """Load the undoable batch of ``root``.

        Raises:
            MissingStateError: If no batch has been recorded.
            StateError: If the stored ledger cannot be parsed.
        """
        path = self.batch_path(root)
        if not path.exists():
            raise MissingStateError(f"No move batch recorded at {path}")
        try:
            return MoveBatch.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            raise StateError(f"Invalid move batch data: {exc}") from exc

    def clear_batch(self, root: Path) -> None:
        """Remove the ledger of ``root`` if present."""
        path = self.batch_path(root)
        if path.exists():
            path.unlink()

    def _state_dir(self, root: Path) -> Path:
        return root / self._base_dirname


__all__ = [
    "BATCH_FILENAME",
    "DEFAULT_STATE_DIRNAME",
    "MissingStateError",
    "StateError",
    "StateRepository",
]
