"""Tests for the derived category tree."""

from __future__ import annotations

from conftest import make_proposal

from shotsort.organization import (
    build_category_tree,
    build_tree_from_proposals,
    count_categories,
    find_node,
)
from shotsort.proposals import CategoryCount


def test_tree_aggregates_counts_on_every_ancestor() -> None:
    proposals = [
        make_proposal("1", category="Finance/Receipts"),
        make_proposal("2", category="Finance/Receipts", selected=False),
        make_proposal("3", category="Finance"),
        make_proposal("4", category="Work/Slides/2024"),
    ]

    forest = build_tree_from_proposals(proposals)

    assert [node.name for node in forest] == ["Finance", "Work"]
    finance = forest[0]
    assert finance.file_count == 3
    assert finance.selected_count == 2
    assert finance.direct_count == 1
    receipts = find_node(forest, "Finance/Receipts")
    assert receipts is not None
    assert receipts.file_count == 2
    assert receipts.selected_count == 1

    leaf = find_node(forest, "Work/Slides/2024")
    assert leaf is not None
    assert leaf.full_path == "Work/Slides/2024"
    assert find_node(forest, "Work/Slides").file_count == 1  # type: ignore[union-attr]


def test_children_are_sorted_and_unique() -> None:
    counts = {
        "A/c": CategoryCount(total=1, selected=1),
        "A/b": CategoryCount(total=2, selected=0),
    }

    forest = build_category_tree(["A/c", "A/b", "A/c"], counts)

    assert len(forest) == 1
    assert [child.name for child in forest[0].children] == ["b", "c"]
    assert forest[0].file_count == 3


def test_missing_counts_count_as_zero() -> None:
    forest = build_category_tree(["Games"], {})

    assert forest[0].file_count == 0
    assert forest[0].selected_count == 0


def test_root_counts_sum_to_total_proposals() -> None:
    proposals = [
        make_proposal(str(index), category=category)
        for index, category in enumerate(["A", "A/x", "B/y/z", "C", "C", "B"])
    ]

    forest = build_tree_from_proposals(proposals)

    assert sum(node.file_count for node in forest) == len(proposals)
    for root in forest:
        for node in root.walk():
            assert node.file_count == node.direct_count + sum(
                child.file_count for child in node.children
            )


def test_count_categories_tracks_selection() -> None:
    counts = count_categories(
        [make_proposal("1", category="A"), make_proposal("2", category="A", selected=False)]
    )

    assert counts["A"].total == 2
    assert counts["A"].selected == 1


def test_find_node_missing_returns_none() -> None:
    assert find_node(build_tree_from_proposals([make_proposal("1")]), "Nope") is None


def test_empty_categories_count_under_fallback_folder() -> None:
    proposals = [
        make_proposal("a", category=""),
        make_proposal("b", category="Work"),
        make_proposal("c", category="//", selected=False),
        make_proposal("d", category="Other"),
    ]

    forest = build_tree_from_proposals(proposals)

    assert sum(node.file_count for node in forest) == len(proposals)
    other = find_node(forest, "Other")
    assert other is not None
    assert other.file_count == 3
    assert other.selected_count == 2


def test_empty_categories_use_configured_fallback() -> None:
    forest = build_tree_from_proposals([make_proposal("a", category="")], fallback="Misc/Loose")

    assert [node.full_path for node in forest[0].walk()] == ["Misc", "Misc/Loose"]
    assert forest[0].file_count == 1
