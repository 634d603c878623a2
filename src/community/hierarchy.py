# src/community/hierarchy.py — v1
"""Parent assignment between adjacent community levels.

Pure functions: take the communities of one detection run, return copies
with ``parent_id`` set. Does NOT touch the graph store; the detector
persists the resulting PARENT_OF edges.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from graphdrift.community.models import DetectedCommunity

logger = logging.getLogger(__name__)

DEFAULT_OVERLAP_RATIO = 0.5


def build_hierarchy(
    communities: list[DetectedCommunity],
    overlap_ratio: float = DEFAULT_OVERLAP_RATIO,
) -> list[DetectedCommunity]:
    """Attach each community to its best parent at the next coarser level.

    A parent qualifies when it holds strictly more than ``overlap_ratio`` of
    the child's members. Among qualifying parents the largest raw overlap
    wins; equal overlaps go to the smallest parent id. Communities of the
    coarsest level, communities with no members and communities with no
    qualifying parent stay roots.

    Args:
        communities: Every community created by one run, any level order.
        overlap_ratio: Majority threshold (exclusive).

    Returns:
        Copies of the input communities, same order, ``parent_id`` set.
    """
    by_level: dict[int, list[DetectedCommunity]] = defaultdict(list)
    for c in communities:
        by_level[c.level].append(c)
    levels = sorted(by_level)

    parents: dict[str, str] = {}
    for child_level, parent_level in zip(levels, levels[1:]):
        candidates = sorted(by_level[parent_level], key=lambda p: p.id)
        for child in by_level[child_level]:
            parent_id = _best_parent(child, candidates, overlap_ratio)
            if parent_id is not None:
                parents[child.id] = parent_id

    logger.debug(
        "Hierarchy built: %d communities over %d levels, %d parent links",
        len(communities), len(levels), len(parents),
    )
    return [c.model_copy(update={"parent_id": parents.get(c.id)}) for c in communities]


def parent_links(communities: list[DetectedCommunity]) -> list[tuple[str, str]]:
    """(child_id, parent_id) pairs for every community that has a parent."""
    return [(c.id, c.parent_id) for c in communities if c.parent_id is not None]


def _best_parent(
    child: DetectedCommunity,
    candidates: list[DetectedCommunity],
    overlap_ratio: float,
) -> str | None:
    size = len(child.member_ids)
    if size == 0:
        return None

    best_id: str | None = None
    best_overlap = 0
    # candidates are sorted by id, so strict > keeps the smallest id on ties
    for parent in candidates:
        overlap = len(child.member_ids & parent.member_ids)
        if overlap / size > overlap_ratio and overlap > best_overlap:
            best_id = parent.id
            best_overlap = overlap
    return best_id
