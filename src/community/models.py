# src/community/models.py — v1
"""Community models: persisted Community, run-scoped DetectedCommunity,
repository row types and detection/assignment reports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


def _to_native_datetime(value: Any) -> Any:
    """Convert neo4j.time.DateTime (or anything with to_native) to datetime."""
    if value is not None and hasattr(value, "to_native"):
        return value.to_native()
    return value


class Community(BaseModel):
    """Persisted cluster of related concepts at one hierarchy level.

    Field names are snake_case; node properties are camelCase and map
    through the alias generator.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    level: int
    name: str = ""
    summary: str | None = None
    embedding: list[float] | None = None
    rating: float = 0.0
    member_count: int = 0
    is_stale: bool = True
    stale_since: datetime | None = None
    last_processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    score: float | None = None

    @field_validator(
        "stale_since", "last_processed_at", "created_at", "updated_at", mode="before"
    )
    @classmethod
    def _coerce_temporal(cls, v: Any) -> Any:  # noqa: N805
        return _to_native_datetime(v)


class DetectedCommunity(BaseModel):
    """Cluster produced by one detection run; never persisted as such."""

    id: str
    level: int
    member_ids: frozenset[str] = Field(default_factory=frozenset)
    parent_id: str | None = None


class MemberConcept(BaseModel):
    id: str
    value: str
    description: str | None = None


class MemberRelationship(BaseModel):
    """Relationship between two members, identified by concept value."""

    a: str
    b: str
    weight: float = 0.0


class CommunityAffinity(BaseModel):
    """Candidate community for an orphan concept, with neighbourhood stats."""

    community_id: str
    level: int = 0
    total_weight: float = 0.0
    member_count: int = 0
    relationship_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> float:
        """total_weight * (1 + relationship_count / member_count)."""
        if self.member_count <= 0:
            return self.total_weight
        return self.total_weight * (1 + self.relationship_count / self.member_count)

    @property
    def qualifies(self) -> bool:
        return self.total_weight > 0 and self.relationship_count > 0


class LevelCount(BaseModel):
    level: int
    count: int


class StaleCommunityRef(BaseModel):
    community_id: str
    scope_id: str


class LevelReport(BaseModel):
    """Outcome of one resolution pass."""

    level: int
    resolution: float
    graph_name: str
    clusters_found: int = 0
    communities_created: int = 0


class DetectionReport(BaseModel):
    """Result of a full detection run."""

    scope_id: str
    run_id: str
    levels: list[LevelReport] = Field(default_factory=list)
    total_communities: int = 0
    parent_links: int = 0
    skipped: bool = False


class AssignmentReport(BaseModel):
    """Result of incremental orphan assignment."""

    orphans: list[str] = Field(default_factory=list)
    assigned: dict[str, str] = Field(default_factory=dict)
    unassigned: list[str] = Field(default_factory=list)
    stale_community_ids: list[str] = Field(default_factory=list)
