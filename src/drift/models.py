# src/drift/models.py — v1
"""DRIFT search types: phases, mutable run state, LLM output schemas, result."""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, Field

from graphdrift.community.models import Community
from graphdrift.config.settings import Settings
from graphdrift.core.models import TokenUsage

NO_CONTEXT_ANSWER = "No relevant community context found for this question."
NO_INFORMATION_ANSWER = "No relevant information found in the knowledge base."
NO_FOLLOWUPS_PLACEHOLDER = "No follow-up investigations were conducted."


class DriftPhase(str, Enum):
    HYDE = "hyde"
    COMMUNITY_SEARCH = "community_search"
    PRIMER_ANSWER = "primer_answer"
    FOLLOWUP = "followup"
    SYNTHESIS = "synthesis"
    END = "end"


class DriftConfig(BaseModel):
    """Limits and sampling settings for one engine."""

    top_k: int = Field(default=5, ge=1)
    max_depth: int = Field(default=2, ge=0)
    per_step_cap: int = Field(default=3, ge=1)
    max_hops: int = Field(default=20, ge=1)
    exemplar_level: int = 1
    detail_limit: int = Field(default=3, ge=0)
    hyde_temperature: float = 0.5
    primer_temperature: float = 0.3
    followup_temperature: float = 0.3
    synthesis_temperature: float = 0.3

    @classmethod
    def from_settings(cls, settings: Settings) -> DriftConfig:
        return cls(
            top_k=settings.drift_top_k,
            max_depth=settings.drift_max_depth,
            per_step_cap=settings.drift_per_step_cap,
            max_hops=settings.drift_max_hops,
            exemplar_level=settings.drift_exemplar_level,
            detail_limit=settings.community_detail_limit,
            hyde_temperature=settings.hyde_temperature,
            primer_temperature=settings.primer_temperature,
            followup_temperature=settings.followup_temperature,
            synthesis_temperature=settings.synthesis_temperature,
        )


class FollowUpAnswer(BaseModel):
    question: str
    answer: str
    depth: int
    additional_questions: list[str] = Field(default_factory=list)
    should_continue: bool = False


class DriftState(BaseModel):
    """Mutable state of one search call; discarded when the call ends."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    question: str
    top_k: int = 5
    max_depth: int = 2

    phase: DriftPhase | None = None
    hops: int = 0
    token_usage: TokenUsage = Field(default_factory=TokenUsage)

    # HYDE
    hypothetical_answer: str = ""
    hyde_embedding: list[float] = Field(default_factory=list)

    # COMMUNITY_SEARCH
    matched_communities: list[Community] = Field(default_factory=list)
    community_summaries: str = ""

    # PRIMER_ANSWER
    initial_answer: str = ""
    confidence: float = 0.0
    follow_up_questions: list[str] = Field(default_factory=list)

    # FOLLOWUP
    pending_questions: list[str] = Field(default_factory=list)
    current_depth: int = 0
    follow_up_answers: list[FollowUpAnswer] = Field(default_factory=list)
    prior_context: str = ""
    community_details: str | None = None
    exploration_done: bool = False

    # SYNTHESIS
    final_answer: str | None = None

    def add_usage(self, usage: TokenUsage | None) -> None:
        self.token_usage = self.token_usage.add(usage)


class DriftSearchResult(BaseModel):
    answer: str
    initial_answer: str = ""
    confidence: float = 0.0
    matched_communities: list[Community] = Field(default_factory=list)
    follow_up_answers: list[FollowUpAnswer] = Field(default_factory=list)
    hyde_embedding: list[float] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    hops: int = 0

    @classmethod
    def from_state(cls, state: DriftState) -> DriftSearchResult:
        return cls(
            answer=state.final_answer or "",
            initial_answer=state.initial_answer,
            confidence=state.confidence,
            matched_communities=state.matched_communities,
            follow_up_answers=state.follow_up_answers,
            hyde_embedding=state.hyde_embedding,
            token_usage=state.token_usage,
            hops=state.hops,
        )


# --- LLM output schemas ---


class HydeOutput(BaseModel):
    hypothetical_answer: str


class PrimerOutput(BaseModel):
    answer: str
    follow_up_questions: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0, le=100)


class FollowUpOutput(BaseModel):
    answer: str
    additional_questions: list[str] = Field(default_factory=list)
    should_continue: bool = False


class SynthesisOutput(BaseModel):
    final_answer: str
