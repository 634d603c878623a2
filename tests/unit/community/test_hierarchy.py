# tests/unit/community/test_hierarchy.py — v1
"""Tests for community/hierarchy.py — parent assignment across levels."""

from __future__ import annotations

from graphdrift.community.hierarchy import build_hierarchy, parent_links
from graphdrift.community.models import DetectedCommunity


def _c(cid: str, level: int, *members: str) -> DetectedCommunity:
    return DetectedCommunity(id=cid, level=level, member_ids=frozenset(members))


def _parents(communities: list[DetectedCommunity]) -> dict[str, str | None]:
    return {c.id: c.parent_id for c in build_hierarchy(communities)}


class TestBuildHierarchy:
    def test_majority_parent(self):
        result = _parents([
            _c("child", 0, "a", "b", "c"),
            _c("p1", 1, "a", "b", "x", "y"),
            _c("p2", 1, "c", "z"),
        ])
        assert result["child"] == "p1"
        assert result["p1"] is None
        assert result["p2"] is None

    def test_exactly_half_is_not_majority(self):
        result = _parents([
            _c("child", 0, "a", "b", "c", "d"),
            _c("p1", 1, "a", "b"),
            _c("p2", 1, "c", "d"),
        ])
        assert result["child"] is None

    def test_tie_goes_to_smallest_parent_id(self):
        # Both parents hold all three members
        result = _parents([
            _c("child", 0, "a", "b", "c"),
            _c("zeta", 1, "a", "b", "c", "q"),
            _c("alpha", 1, "a", "b", "c", "r"),
        ])
        assert result["child"] == "alpha"

    def test_largest_overlap_wins(self):
        result = _parents([
            _c("child", 0, "a", "b", "c", "d", "e"),
            _c("p_small", 1, "a", "b", "c"),
            _c("p_big", 1, "a", "b", "c", "d"),
        ])
        assert result["child"] == "p_big"

    def test_only_adjacent_level_considered(self):
        result = _parents([
            _c("child", 0, "a", "b", "c"),
            _c("mid", 1, "x", "y", "z"),
            _c("top", 2, "a", "b", "c", "x", "y", "z"),
        ])
        assert result["child"] is None
        assert result["mid"] == "top"

    def test_empty_member_set_stays_root(self):
        result = _parents([_c("child", 0), _c("p", 1, "a")])
        assert result["child"] is None

    def test_coarsest_level_has_no_parent(self):
        result = _parents([_c("only", 0, "a", "b", "c")])
        assert result == {"only": None}

    def test_custom_ratio(self):
        communities = [_c("child", 0, "a", "b", "c", "d"), _c("p", 1, "a", "b")]
        assert build_hierarchy(communities, overlap_ratio=0.4)[0].parent_id == "p"

    def test_input_untouched_and_order_kept(self):
        communities = [_c("p", 1, "a", "b", "c"), _c("child", 0, "a", "b", "c")]
        result = build_hierarchy(communities)
        assert [c.id for c in result] == ["p", "child"]
        assert communities[1].parent_id is None
        assert result[1].parent_id == "p"

    def test_each_child_at_most_one_parent(self):
        result = build_hierarchy([
            _c("c1", 0, "a", "b", "c"),
            _c("c2", 0, "d", "e", "f"),
            _c("p", 1, "a", "b", "c", "d", "e", "f"),
        ])
        links = parent_links(result)
        assert sorted(links) == [("c1", "p"), ("c2", "p")]


class TestParentLinks:
    def test_skips_roots(self):
        communities = [
            DetectedCommunity(id="a", level=0, parent_id="b"),
            DetectedCommunity(id="b", level=1),
        ]
        assert parent_links(communities) == [("a", "b")]
