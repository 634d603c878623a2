# src/community/summarizer.py — v1
"""Community summarizer — regenerates reports for stale communities.

For each community: load members and intra-community relationships, ask
the LLM for ``{title, summary, rating}``, embed ``title\\n\\nsummary`` and
store everything through ``update_summary`` (which clears the stale flag).
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from graphdrift.community.models import Community, MemberConcept, MemberRelationship
from graphdrift.community.repository import CommunityRepository
from graphdrift.core.models import TokenUsage
from graphdrift.core.scope import scope_context
from graphdrift.llm.structured import StructuredLLM
from graphdrift.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "community_summarizer.txt"

MAX_TITLE_LENGTH = 50


class CommunityReport(BaseModel):
    """LLM output for one community."""

    title: str
    summary: str
    rating: float = Field(ge=0, le=100)


class SummaryBatchResult(BaseModel):
    """Outcome of a stale-community sweep."""

    processed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)


class CommunitySummarizer:
    """Generate and persist community reports."""

    def __init__(
        self,
        repository: CommunityRepository,
        llm: StructuredLLM,
        embedder: BaseEmbedder,
        temperature: float = 0.3,
        system_prompt: str | None = None,
    ) -> None:
        self._repo = repository
        self._llm = llm
        self._embedder = embedder
        self._temperature = temperature
        self._system_prompt = system_prompt

    def _load_prompt(self) -> str:
        if self._system_prompt is None:
            self._system_prompt = _PROMPT_PATH.read_text(encoding="utf-8")
        return self._system_prompt

    async def summarize_by_id(self, community_id: str) -> TokenUsage | None:
        community = await self._repo.find_by_id(community_id)
        if community is None:
            logger.warning("Community %s not found, skipping", community_id)
            return None
        return await self.summarize(community)

    async def summarize(self, community: Community) -> TokenUsage | None:
        """Regenerate one community's report.

        Returns:
            Token usage of the LLM call, or None when the community has no
            members and was skipped.
        """
        members = await self._repo.find_member_key_concepts(community.id)
        if not members:
            logger.warning("Community %s has no members, skipping", community.id)
            return None
        relationships = await self._repo.find_member_relationships(community.id)

        result = await self._llm.call(
            output_schema=CommunityReport,
            input_params={
                "entities": format_entities(members),
                "relationships": format_relationships(relationships),
                "level": community.level,
                "member_count": len(members),
            },
            system_prompts=[self._load_prompt()],
            temperature=self._temperature,
        )
        report = result.data
        embedding = await self._embedder.vectorise_text(f"{report.title}\n\n{report.summary}")

        await self._repo.update_summary(
            community_id=community.id,
            name=report.title[:MAX_TITLE_LENGTH],
            summary=report.summary,
            embedding=embedding,
            rating=float(round(report.rating)),
        )
        logger.debug(
            "Summarized community %s: %r (rating %s)",
            community.id, report.title, round(report.rating),
        )
        return result.token_usage

    async def summarize_stale(self, limit: int = 50) -> SummaryBatchResult:
        """Summarize up to ``limit`` stale communities across all scopes.

        Each community runs inside its own scope; a failure is recorded and
        the sweep continues with the next community.
        """
        batch = SummaryBatchResult()
        refs = await self._repo.find_stale_communities(limit)
        logger.info("Found %d stale communities", len(refs))

        for ref in refs:
            try:
                with scope_context(ref.scope_id):
                    usage = await self.summarize_by_id(ref.community_id)
            except Exception as e:
                logger.error("Failed to summarize community %s: %s", ref.community_id, e)
                batch.failed[ref.community_id] = str(e)
                continue
            if usage is None:
                batch.skipped.append(ref.community_id)
            else:
                batch.processed.append(ref.community_id)
                batch.token_usage = batch.token_usage.add(usage)
        return batch


def format_entities(members: list[MemberConcept]) -> str:
    lines = []
    for m in members:
        desc = f": {m.description}" if m.description else ""
        lines.append(f"- {m.value}{desc}")
    return "\n".join(lines)


def format_relationships(relationships: list[MemberRelationship]) -> str:
    if not relationships:
        return "No explicit relationships between members."
    return "\n".join(f"- {r.a} <-> {r.b} (weight: {r.weight})" for r in relationships)
