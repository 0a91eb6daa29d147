"""Tests for destination conflict detection."""

from __future__ import annotations

from conftest import FakeFileSystem, make_proposal

from shotsort.organization import ALREADY_EXISTS, DUPLICATE_DESTINATION, ConflictDetector


def test_duplicate_destinations_flag_every_claimant(fake_fs: FakeFileSystem) -> None:
    proposals = [
        make_proposal("a", directory="/root", category="Work", name="report"),
        make_proposal("b", directory="/root", category="Work", name="report.png"),
        make_proposal("c", directory="/root", category="Work", name="other"),
    ]

    conflicts = ConflictDetector(fake_fs).detect(proposals)

    assert [conflict.id for conflict in conflicts] == ["a", "b"]
    for conflict in conflicts:
        assert conflict.destination == "/root/Work/report.png"
        assert conflict.reasons == (DUPLICATE_DESTINATION,)


def test_existing_destination_clears_when_overwrite_toggled() -> None:
    fs = FakeFileSystem(files=["/root/Work/report.png"])
    proposal = make_proposal("a", directory="/root", category="Work", name="report")
    detector = ConflictDetector(fs)

    conflicts = detector.detect([proposal])
    assert len(conflicts) == 1
    assert conflicts[0].reasons == (ALREADY_EXISTS,)
    assert conflicts[0].proposed_name == "report"

    assert detector.detect([proposal], overwrite_ids={"a"}) == []


def test_reasons_are_ordered_duplicate_then_exists() -> None:
    fs = FakeFileSystem(files=["/root/Work/x.png"])
    proposals = [
        make_proposal("a", directory="/root", name="x.png"),
        make_proposal("b", directory="/root", name="x.png"),
    ]

    conflicts = ConflictDetector(fs).detect(proposals, overwrite_ids={"b"})

    assert conflicts[0].reasons == (DUPLICATE_DESTINATION, ALREADY_EXISTS)
    assert conflicts[1].reasons == (DUPLICATE_DESTINATION,)


def test_unselected_proposals_are_ignored(fake_fs: FakeFileSystem) -> None:
    proposals = [
        make_proposal("a", name="same.png"),
        make_proposal("b", name="same.png", selected=False),
    ]

    assert ConflictDetector(fake_fs).detect(proposals) == []


def test_existence_is_checked_once_for_distinct_destinations(fake_fs: FakeFileSystem) -> None:
    proposals = [
        make_proposal("a", name="same.png"),
        make_proposal("b", name="same.png"),
        make_proposal("c", name="other.png"),
    ]

    ConflictDetector(fake_fs).detect(proposals)

    assert len(fake_fs.exists_calls) == 1
    assert sorted(fake_fs.exists_calls[0]) == ["/shots/Work/other.png", "/shots/Work/same.png"]


def test_nothing_selected_skips_existence_check(fake_fs: FakeFileSystem) -> None:
    assert ConflictDetector(fake_fs).detect([make_proposal("a", selected=False)]) == []
    assert fake_fs.exists_calls == []


def test_detection_is_stateless_between_passes(fake_fs: FakeFileSystem) -> None:
    first = make_proposal("a", name="same.png")
    second = make_proposal("b", name="same.png")
    detector = ConflictDetector(fake_fs)

    assert len(detector.detect([first, second])) == 2

    second.proposed_name = "different.png"
    assert detector.detect([first, second]) == []


def test_destinations_differing_only_in_case_are_duplicates(fake_fs: FakeFileSystem) -> None:
    proposals = [
        make_proposal("a", directory="/root", category="Work", name="Report"),
        make_proposal("b", directory="/root", category="work", name="report.PNG"),
    ]

    conflicts = ConflictDetector(fake_fs).detect(proposals)

    assert [conflict.id for conflict in conflicts] == ["a", "b"]
    assert all(conflict.reasons == (DUPLICATE_DESTINATION,) for conflict in conflicts)
    assert [conflict.destination for conflict in conflicts] == [
        "/root/Work/Report.png",
        "/root/work/report.PNG",
    ]
    assert fake_fs.exists_calls == [["/root/Work/Report.png", "/root/work/report.PNG"]]
