# src/community/detector.py — v1
"""Multi-resolution community detection for the current scope.

A full run deletes the scope's communities, then for each resolution
(finest first) projects the concept graph, clusters it, persists clusters
of at least ``min_community_size`` members and drops the projection.
Parent links are computed once all levels exist.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from collections.abc import Callable, Sequence

from graphdrift.community.hierarchy import DEFAULT_OVERLAP_RATIO, build_hierarchy, parent_links
from graphdrift.community.models import DetectedCommunity, DetectionReport, LevelReport
from graphdrift.community.repository import CommunityRepository
from graphdrift.core.scope import ScopeLockRegistry, current_scope
from graphdrift.logging.context import set_run_context
from graphdrift.rag.clustering.base_clustering_engine import BaseClusteringEngine

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTIONS: tuple[float, ...] = (1.0, 0.5, 0.25)
DEFAULT_MIN_COMMUNITY_SIZE = 3
PROJECTION_PREFIX = "concept_graph_"


def _default_token() -> str:
    return uuid.uuid4().hex


class CommunityDetector:
    """Runs full hierarchical detection against a clustering engine."""

    def __init__(
        self,
        repository: CommunityRepository,
        clustering_engine: BaseClusteringEngine,
        resolutions: Sequence[float] = DEFAULT_RESOLUTIONS,
        min_community_size: int = DEFAULT_MIN_COMMUNITY_SIZE,
        overlap_ratio: float = DEFAULT_OVERLAP_RATIO,
        locks: ScopeLockRegistry | None = None,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        if not resolutions:
            raise ValueError("At least one resolution is required")
        self._repo = repository
        self._engine = clustering_engine
        self._resolutions = list(resolutions)
        self._min_size = min_community_size
        self._overlap_ratio = overlap_ratio
        self._locks = locks or ScopeLockRegistry()
        self._token_factory = token_factory or _default_token

    @property
    def locks(self) -> ScopeLockRegistry:
        return self._locks

    async def detect_communities(self) -> DetectionReport:
        """Rebuild every community of the current scope.

        Returns:
            DetectionReport; ``skipped`` is True when the clustering
            backend is unavailable.

        Raises:
            ScopeNotSetError: If no scope is active.
        """
        scope_id = current_scope()
        run_id = uuid.uuid4().hex[:12]
        set_run_context("community_detector", run_id)

        logger.info("Starting community detection for scope %s", scope_id)
        async with self._locks.hold(scope_id):
            try:
                return await self._run(scope_id, run_id)
            except Exception as e:
                logger.error("Community detection failed: %s", e)
                raise

    async def _run(self, scope_id: str, run_id: str) -> DetectionReport:
        report = DetectionReport(scope_id=scope_id, run_id=run_id)

        await self._repo.delete_all_communities()

        if not await self._backend_available():
            logger.warning(
                "Clustering backend %s unavailable, skipping community detection",
                self._engine.backend_name,
            )
            report.skipped = True
            return report

        created: list[DetectedCommunity] = []
        for level, resolution in enumerate(self._resolutions):
            level_report, communities = await self._detect_level(scope_id, level, resolution)
            report.levels.append(level_report)
            created.extend(communities)

        linked = build_hierarchy(created, self._overlap_ratio)
        links = parent_links(linked)
        for child_id, parent_id in links:
            await self._repo.set_parent_community(child_id, parent_id)

        report.total_communities = len(created)
        report.parent_links = len(links)
        logger.info(
            "Community detection complete: %d communities across %d levels, %d parent links",
            report.total_communities, len(report.levels), report.parent_links,
        )
        return report

    async def _backend_available(self) -> bool:
        try:
            return await self._engine.is_available()
        except Exception as e:
            logger.warning("Clustering availability probe raised: %s", e)
            return False

    async def _detect_level(
        self, scope_id: str, level: int, resolution: float
    ) -> tuple[LevelReport, list[DetectedCommunity]]:
        graph_name = f"{PROJECTION_PREFIX}{self._token_factory()}"
        try:
            await self._engine.project(graph_name, scope_id)
            assignments = await self._engine.stream_clusters(graph_name, resolution)
            clusters = group_assignments(assignments)
            communities = await self._persist_clusters(clusters, level)
        finally:
            await self._drop_projection(graph_name)

        logger.debug(
            "Level %d (resolution %.3g): %d clusters, %d persisted",
            level, resolution, len(clusters), len(communities),
        )
        return (
            LevelReport(
                level=level,
                resolution=resolution,
                graph_name=graph_name,
                clusters_found=len(clusters),
                communities_created=len(communities),
            ),
            communities,
        )

    async def _persist_clusters(
        self, clusters: list[list[str]], level: int
    ) -> list[DetectedCommunity]:
        persisted: list[DetectedCommunity] = []
        for members in clusters:
            if len(members) < self._min_size:
                continue
            community = await self._repo.create_community(
                name=f"Community L{level}",
                level=level,
                member_count=len(members),
                rating=0.0,
            )
            await self._repo.update_community_members(community.id, members)
            persisted.append(
                DetectedCommunity(
                    id=community.id, level=level, member_ids=frozenset(members)
                )
            )
        return persisted

    async def _drop_projection(self, graph_name: str) -> None:
        try:
            await self._engine.drop(graph_name)
        except Exception as e:
            logger.warning("Failed to drop projection %s: %s", graph_name, e)


def group_assignments(assignments: dict[str, int]) -> list[list[str]]:
    """Group {concept_id: cluster_id} into sorted member lists.

    Clusters are ordered by cluster id so persistence order is stable.
    """
    groups: dict[int, list[str]] = defaultdict(list)
    for concept_id, cluster_id in assignments.items():
        groups[cluster_id].append(concept_id)
    return [sorted(groups[cid]) for cid in sorted(groups)]
