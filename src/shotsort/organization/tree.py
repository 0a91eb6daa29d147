"""Derive the navigable category folder tree from proposals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional

from shotsort.proposals.categories import CATEGORY_SEPARATOR, split_category
from shotsort.proposals.models import CategoryCount, Proposal

from .paths import DEFAULT_FALLBACK_CATEGORY, sanitize_category


@dataclass(frozen=True, slots=True)
class CategoryNode:
    """One folder of the derived category hierarchy.

    Attributes:
        name: Last segment of the folder path.
        full_path: ``/``-joined path from the root folder.
        children: Child folders sorted by name.
        file_count: Proposals at this path or any descendant.
        selected_count: Selected proposals at this path or any descendant.
    """

    name: str
    full_path: str
    children: tuple["CategoryNode", ...] = ()
    file_count: int = 0
    selected_count: int = 0

    @property
    def direct_count(self) -> int:
        """Return the number of proposals assigned exactly at this path."""
        return self.file_count - sum(child.file_count for child in self.children)

    def walk(self) -> Iterator["CategoryNode"]:
        """Yield this node and its descendants depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(slots=True)
class _NodeBuilder:
    name: str
    full_path: str
    children: list[str] = field(default_factory=list)
    file_count: int = 0
    selected_count: int = 0


def count_categories(proposals: Iterable[Proposal]) -> dict[str, CategoryCount]:
    """Return ``(total, selected)`` counts per exact category of ``proposals``."""
    counts: dict[str, CategoryCount] = {}
    for proposal in proposals:
        count = counts.setdefault(proposal.proposed_category, CategoryCount())
        count.total += 1
        if proposal.selected:
            count.selected += 1
    return counts


def build_category_tree(
    categories: Iterable[str],
    counts: Mapping[str, CategoryCount],
    *,
    fallback: str = DEFAULT_FALLBACK_CATEGORY,
) -> list[CategoryNode]:
    """Build the folder forest for ``categories``.

    One node is created per distinct path prefix. Each category's counts are
    added to every node on its path, the leaf included, so a folder's counts
    cover all of its descendants. Categories without any segment are counted
    under the fallback folder, where their files are moved.

    Args:
        categories: Category paths to place in the tree; duplicates are ignored.
        counts: Counts per exact category path. Missing entries count as zero.
        fallback: Folder that receives categories without segments.

    Returns:
        list[CategoryNode]: Root folders sorted by name, children sorted likewise.
    """
    builders: dict[str, _NodeBuilder] = {}
    roots: list[str] = []

    for category in dict.fromkeys(categories):
        count = counts.get(category)
        prefix = ""
        segments = split_category(category) or split_category(
            sanitize_category("", fallback=fallback)
        )
        for segment in segments:
            parent = prefix
            prefix = f"{prefix}{CATEGORY_SEPARATOR}{segment}" if prefix else segment
            node = builders.get(prefix)
            if node is None:
                node = _NodeBuilder(name=segment, full_path=prefix)
                builders[prefix] = node
                if parent:
                    builders[parent].children.append(prefix)
                else:
                    roots.append(prefix)
            if count is not None:
                node.file_count += count.total
                node.selected_count += count.selected

    def _freeze(path: str) -> CategoryNode:
        builder = builders[path]
        children = sorted((_freeze(child) for child in builder.children), key=_node_name)
        return CategoryNode(
            name=builder.name,
            full_path=builder.full_path,
            children=tuple(children),
            file_count=builder.file_count,
            selected_count=builder.selected_count,
        )

    return sorted((_freeze(root) for root in roots), key=_node_name)


def build_tree_from_proposals(
    proposals: Iterable[Proposal],
    *,
    fallback: str = DEFAULT_FALLBACK_CATEGORY,
) -> list[CategoryNode]:
    """Count ``proposals`` per category and build the folder forest."""
    counts = count_categories(proposals)
    return build_category_tree(counts.keys(), counts, fallback=fallback)


def find_node(forest: Iterable[CategoryNode], path: str) -> Optional[CategoryNode]:
    """Return the node whose full path equals ``path``, if any."""
    target = CATEGORY_SEPARATOR.join(split_category(path))
    for root in forest:
        for node in root.walk():
            if node.full_path == target:
                return node
    return None


def _node_name(node: CategoryNode) -> str:
    return node.name


__all__ = [
    "CategoryNode",
    "build_category_tree",
    "build_tree_from_proposals",
    "count_categories",
    "find_node",
]
