# src/batch/models.py — v3
"""Batch models: per-scope migration results and community status."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BatchResult(BaseModel):
    """Summary of a detection run over every scope.

    A scope skipped because the clustering backend is unavailable completed
    without error, so ``skipped_scopes`` is a subset of ``succeeded_scopes``.
    """

    total_scopes: int = 0
    succeeded_scopes: list[str] = Field(default_factory=list)
    failed_scopes: dict[str, str] = Field(default_factory=dict)
    skipped_scopes: list[str] = Field(default_factory=list)
    communities_created: int = 0
    duration_seconds: float = 0.0

    @property
    def processed_scopes(self) -> int:
        return len(self.succeeded_scopes)


class ScopeCommunityStatus(BaseModel):
    """Community counts of one scope."""

    scope_id: str
    scope_name: str = ""
    total_communities: int = 0
    stale_communities: int = 0

    @property
    def processed_communities(self) -> int:
        return self.total_communities - self.stale_communities
