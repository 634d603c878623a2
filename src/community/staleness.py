# src/community/staleness.py — v1
"""Incremental community maintenance between full detection runs.

Concept mutations mark the communities holding the concept stale; new
concepts from freshly ingested content are attached to their best-matching
existing community instead of re-clustering the whole scope.
"""

from __future__ import annotations

import logging

from graphdrift.community.detector import CommunityDetector
from graphdrift.community.models import AssignmentReport, CommunityAffinity, DetectionReport
from graphdrift.community.repository import CommunityRepository
from graphdrift.core.scope import ScopeLockRegistry, current_scope

logger = logging.getLogger(__name__)


def best_affinity(candidates: list[CommunityAffinity]) -> CommunityAffinity | None:
    """Highest-scoring qualifying candidate.

    Ties go to the finer level, then the smaller community id.
    """
    qualifying = [c for c in candidates if c.qualifies]
    if not qualifying:
        return None
    return min(qualifying, key=lambda c: (-c.score, c.level, c.community_id))


class StalenessTracker:
    """Staleness marking and affinity-based orphan assignment."""

    def __init__(
        self,
        repository: CommunityRepository,
        detector: CommunityDetector,
        locks: ScopeLockRegistry | None = None,
    ) -> None:
        self._repo = repository
        self._detector = detector
        self._locks = locks or detector.locks

    async def mark_affected_communities_stale(self, concept_id: str) -> list[str]:
        """Mark every community containing the concept stale.

        Returns:
            Ids of the communities marked (empty when the concept is in none).
        """
        communities = await self._repo.find_communities_by_key_concept(concept_id)
        community_ids = list(dict.fromkeys(c.id for c in communities))
        if community_ids:
            await self._repo.mark_as_stale(community_ids)
            logger.debug(
                "Marked %d communities as stale for concept %s",
                len(community_ids), concept_id,
            )
        return community_ids

    async def assign_key_concepts_to_communities(
        self, content_id: str, content_type: str
    ) -> AssignmentReport:
        """Attach the content's orphan concepts to their best community.

        ``mark_as_stale`` is called once, with the de-duplicated ids of every
        community that gained a member, and not at all when nothing moved.
        """
        scope_id = current_scope()
        async with self._locks.hold(scope_id):
            return await self._assign(content_id, content_type)

    async def _assign(self, content_id: str, content_type: str) -> AssignmentReport:
        orphans = await self._repo.find_orphan_key_concepts_for_content(
            content_id, content_type
        )
        report = AssignmentReport(orphans=list(orphans))
        if not orphans:
            logger.debug("No orphan concepts for %s %s", content_type, content_id)
            return report

        affected: dict[str, None] = {}
        for concept_id in orphans:
            candidates = await self._repo.find_communities_by_related_key_concepts(concept_id)
            best = best_affinity(candidates)
            if best is None:
                report.unassigned.append(concept_id)
                continue
            await self._repo.add_member_to_community(best.community_id, concept_id)
            report.assigned[concept_id] = best.community_id
            affected[best.community_id] = None

        if affected:
            report.stale_community_ids = list(affected)
            await self._repo.mark_as_stale(report.stale_community_ids)

        logger.info(
            "Assigned %d/%d orphan concepts to %d communities",
            len(report.assigned), len(orphans), len(affected),
        )
        return report

    async def detect_and_assign_communities(
        self, content_id: str, content_type: str
    ) -> DetectionReport | AssignmentReport:
        """Full detection on a scope with no communities, incremental otherwise.

        The emptiness check runs outside the scope lock; concurrent cold
        starts serialize on the lock and each run a full detection.
        """
        counts = await self._repo.count_by_level()
        if sum(c.count for c in counts) == 0:
            logger.info("No communities in scope, running full detection")
            return await self._detector.detect_communities()
        return await self.assign_key_concepts_to_communities(content_id, content_type)
