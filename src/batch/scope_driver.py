# src/batch/scope_driver.py — v2
"""Batch driver — community detection and status over every scope.

Each scope runs inside its own scope context; a scope that fails is
recorded and the run continues with the next one.
"""

from __future__ import annotations

import logging
import time

from graphdrift.batch.models import BatchResult, ScopeCommunityStatus
from graphdrift.batch.scope_enumerator import BaseScopeEnumerator
from graphdrift.community.detector import CommunityDetector
from graphdrift.community.models import DetectionReport
from graphdrift.community.repository import CommunityRepository
from graphdrift.core.scope import scope_context

logger = logging.getLogger(__name__)


class ScopeBatchDriver:
    """Runs full community detection for all scopes."""

    def __init__(
        self,
        enumerator: BaseScopeEnumerator,
        detector: CommunityDetector,
        repository: CommunityRepository,
    ) -> None:
        self._enumerator = enumerator
        self._detector = detector
        self._repo = repository

    async def migrate_all(self) -> BatchResult:
        """Detect communities for every scope.

        Summaries are produced afterwards by the summarizer sweep, since
        every new community starts stale.
        """
        start = time.monotonic()
        scopes = await self._enumerator.fetch_all()
        result = BatchResult(total_scopes=len(scopes))
        logger.info("Found %d scopes to process", len(scopes))

        for scope in scopes:
            try:
                report = await self.migrate_scope(scope.id)
            except Exception as e:
                logger.error("Failed to process scope %s: %s", scope.id, e)
                result.failed_scopes[scope.id] = str(e)
                continue
            result.succeeded_scopes.append(scope.id)
            if report.skipped:
                result.skipped_scopes.append(scope.id)
            result.communities_created += report.total_communities

        result.duration_seconds = round(time.monotonic() - start, 3)
        logger.info(
            "Migration completed: %d/%d scopes processed, %d failed",
            result.processed_scopes, result.total_scopes, len(result.failed_scopes),
        )
        return result

    async def migrate_scope(self, scope_id: str) -> DetectionReport:
        with scope_context(scope_id):
            logger.debug("Running community detection for scope %s", scope_id)
            return await self._detector.detect_communities()

    async def get_status(self) -> list[ScopeCommunityStatus]:
        """Total and stale community counts per scope."""
        statuses: list[ScopeCommunityStatus] = []
        for scope in await self._enumerator.fetch_all():
            with scope_context(scope.id):
                counts = await self._repo.count_by_level()
                stale = await self._repo.count_stale()
            statuses.append(
                ScopeCommunityStatus(
                    scope_id=scope.id,
                    scope_name=scope.name,
                    total_communities=sum(c.count for c in counts),
                    stale_communities=stale,
                )
            )
        return statuses
