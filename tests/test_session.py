"""Tests for the review session workflow."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeFileSystem

from shotsort.config import OrganizationOptions
from shotsort.organization import (
    ALREADY_EXISTS,
    ConflictsPendingError,
    OptimizerPhase,
    OptimizerStateError,
)
from shotsort.proposals import ProposedEvent, SkippedEvent
from shotsort.session import ReviewSession


def _event(proposal_id: str, category: str, name: str, directory: str = "/root") -> ProposedEvent:
    return ProposedEvent(
        id=proposal_id,
        original_path=f"{directory}/{proposal_id}.png",
        original_name=f"{proposal_id}.png",
        proposed_name=name,
        proposed_category=category,
    )


def _session(fs: FakeFileSystem, *events: ProposedEvent) -> ReviewSession:
    session = ReviewSession(fs, fs, OrganizationOptions(format_categories=False))
    session.ingest_many(events)
    fs.files.update(f"/root/{event.id}.png" for event in events)
    return session


def test_optimize_runs_once_per_session(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs, _event("A", "Misc", "a"), _event("B", "Misc", "b"))

    assert session.optimize() is True
    assert session.phase is OptimizerPhase.OPTIMIZED
    assert [proposal.proposed_category for proposal in session.store] == ["Other", "Other"]

    session.edit("A", category="Misc")
    assert session.optimize() is False
    assert session.store.get("A").proposed_category == "Misc"


def test_optimize_rejects_reentry(
    fake_fs: FakeFileSystem, monkeypatch: pytest.MonkeyPatch
) -> None:
    session = _session(fake_fs, _event("A", "Misc", "a"))
    seen: list[Exception] = []

    def _reenter(proposals, options):
        try:
            session.optimize()
        except OptimizerStateError as exc:
            seen.append(exc)
        return list(proposals)

    monkeypatch.setattr("shotsort.session.optimize_folder_structure", _reenter)

    assert session.optimize() is False
    assert len(seen) == 1
    assert session.phase is OptimizerPhase.OPTIMIZED


def test_optimize_failure_resets_phase(
    fake_fs: FakeFileSystem, monkeypatch: pytest.MonkeyPatch
) -> None:
    session = _session(fake_fs, _event("A", "Misc", "a"))

    def _boom(proposals, options):
        raise RuntimeError("boom")

    monkeypatch.setattr("shotsort.session.optimize_folder_structure", _boom)

    with pytest.raises(RuntimeError):
        session.optimize()
    assert session.phase is OptimizerPhase.NOT_STARTED


def test_skipped_events_do_not_create_proposals(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs)

    assert session.ingest(SkippedEvent(name="big.png", size=10**9, reason="too large")) is None
    assert len(session.store) == 0


def test_accept_blocks_on_conflicts_and_resolutions_unblock(fake_fs: FakeFileSystem) -> None:
    session = _session(
        fake_fs,
        _event("a", "Work", "report"),
        _event("b", "Work", "report"),
        _event("c", "Work", "deck"),
    )
    fake_fs.files.add("/root/Work/deck.png")

    with pytest.raises(ConflictsPendingError) as excinfo:
        session.accept("/root")
    assert [conflict.id for conflict in excinfo.value.conflicts] == ["a", "b", "c"]
    assert fake_fs.moves == []

    remaining = session.rename("b", "summary")
    assert [conflict.id for conflict in remaining] == ["c"]
    assert remaining[0].reasons == (ALREADY_EXISTS,)

    assert session.toggle_overwrite("c") == []
    assert "c" in session.overwrite_ids

    report = session.accept("/root")

    assert report.moved_count == 3
    assert session.batch is report.batch
    assert session.overwrite_ids == frozenset()
    assert len(session.store) == 0


def test_skip_removes_proposal_from_batch(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs, _event("a", "Work", "report"), _event("b", "Work", "report"))

    assert session.skip("b") == []
    report = session.accept("/root")

    assert [record.proposal.id for record in report.batch.records] == ["a"]
    assert [proposal.id for proposal in session.store] == ["b"]


def test_edit_drops_overwrite_flag(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs, _event("a", "Work", "report"))
    session.toggle_overwrite("a")

    session.edit("a", name="report")
    assert "a" in session.overwrite_ids

    session.edit("a", category="Games")
    assert "a" not in session.overwrite_ids


def test_failed_run_keeps_previous_batch(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs, _event("a", "Work", "report"), _event("b", "Work", "deck"))
    session.store.set_selected("b", False)
    first = session.accept("/root")

    session.store.set_selected("b", True)
    fake_fs.failures["/root/b.png"] = OSError("locked")
    second = session.accept("/root")

    assert second.batch.is_empty
    assert session.batch is first.batch
    assert session.move_errors == {"b": "locked"}


def test_undo_round_trip_restores_store(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs, _event("a", "Work", "report"), _event("b", "Games", "chess"))
    session.accept("/root")

    report = session.undo()

    assert [proposal.id for proposal in report.restored] == ["a", "b"]
    assert [proposal.proposed_name for proposal in session.store] == ["report.png", "chess.png"]
    assert fake_fs.files == {"/root/a.png", "/root/b.png"}
    assert session.undo_errors == {}


def test_restore_and_dismiss_batch(fake_fs: FakeFileSystem) -> None:
    session = _session(fake_fs, _event("a", "Work", "report"))
    batch = session.accept("/root").batch

    other = ReviewSession(fake_fs, fake_fs)
    other.restore_batch(batch)
    assert other.batch is batch

    other.dismiss_batch()
    assert other.batch is None
    assert other.undo().restored == []


def test_local_session_moves_real_files(tmp_path: Path) -> None:
    source = tmp_path / "shot.png"
    source.write_text("png", encoding="utf-8")
    session = ReviewSession.local()
    session.ingest(
        ProposedEvent(
            id="1",
            original_path=str(source),
            original_name="shot.png",
            proposed_name="receipt",
            proposed_category="finance",
        )
    )

    report = session.accept(str(tmp_path))

    assert report.batch.records[0].moved_path == str(tmp_path / "Finance" / "receipt.png")
    assert not source.exists()

    session.undo()
    assert source.exists()
