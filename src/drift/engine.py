# src/drift/engine.py — v1
"""DRIFT search: HyDE, community search, primer answer, follow-ups, synthesis.

One ``DriftState`` per ``search`` call. The driver loop runs a phase,
counts a hop, and asks ``next_phase`` what to run next; the hop ceiling
forces SYNTHESIS, which always runs exactly once.
"""

from __future__ import annotations

import logging
from pathlib import Path

from graphdrift.community.repository import CommunityRepository
from graphdrift.drift.followup import FollowUpExplorer
from graphdrift.drift.models import (
    NO_CONTEXT_ANSWER,
    NO_FOLLOWUPS_PLACEHOLDER,
    NO_INFORMATION_ANSWER,
    DriftConfig,
    DriftPhase,
    DriftSearchResult,
    DriftState,
    HydeOutput,
    PrimerOutput,
    SynthesisOutput,
)
from graphdrift.drift.phases import next_phase
from graphdrift.llm.structured import StructuredLLM
from graphdrift.logging.context import set_phase_context, set_run_context
from graphdrift.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)

_PROMPT_DIR = Path(__file__).parent.parent / "prompts"
_PROMPT_FILES = {
    DriftPhase.HYDE: "drift_hyde.txt",
    DriftPhase.PRIMER_ANSWER: "drift_primer.txt",
    DriftPhase.SYNTHESIS: "drift_synthesis.txt",
}


class DriftSearchEngine:
    """Answers questions from community reports with iterative drill-down."""

    def __init__(
        self,
        repository: CommunityRepository,
        llm: StructuredLLM,
        embedder: BaseEmbedder,
        config: DriftConfig | None = None,
        explorer: FollowUpExplorer | None = None,
        system_prompts: dict[DriftPhase, str] | None = None,
    ) -> None:
        self._repo = repository
        self._llm = llm
        self._embedder = embedder
        self._config = config or DriftConfig()
        self._explorer = explorer or FollowUpExplorer(
            repository,
            llm,
            per_step_cap=self._config.per_step_cap,
            detail_limit=self._config.detail_limit,
            temperature=self._config.followup_temperature,
        )
        self._prompts: dict[DriftPhase, str] = dict(system_prompts or {})

    @property
    def config(self) -> DriftConfig:
        return self._config

    def _prompt(self, phase: DriftPhase) -> str:
        if phase not in self._prompts:
            path = _PROMPT_DIR / _PROMPT_FILES[phase]
            self._prompts[phase] = path.read_text(encoding="utf-8")
        return self._prompts[phase]

    async def search(
        self,
        question: str,
        top_k: int | None = None,
        max_depth: int | None = None,
    ) -> DriftSearchResult:
        """Run a full DRIFT search in the current scope.

        Raises:
            ScopeNotSetError: If no scope is active.
            LLMOutputError: If an LLM reply cannot be parsed.
        """
        state = DriftState(
            question=question,
            top_k=top_k if top_k is not None else self._config.top_k,
            max_depth=max_depth if max_depth is not None else self._config.max_depth,
        )
        set_run_context("drift_search", state.run_id)
        logger.info("Starting DRIFT search: %r", question)

        try:
            await self._drive(state)
        except Exception as e:
            logger.error("DRIFT search failed in phase %s: %s", state.phase, e)
            raise
        finally:
            set_phase_context(None)

        logger.info(
            "DRIFT search complete: %d communities, %d follow-ups, %d hops",
            len(state.matched_communities), len(state.follow_up_answers), state.hops,
        )
        return DriftSearchResult.from_state(state)

    async def quick_search(self, question: str, top_k: int | None = None) -> DriftSearchResult:
        """Search without follow-up exploration."""
        return await self.search(question, top_k=top_k, max_depth=0)

    async def _drive(self, state: DriftState) -> None:
        phase = next_phase(state, self._config.max_hops)
        while phase is not DriftPhase.END:
            set_phase_context(phase.value)
            logger.debug("Phase %s (hop %d/%d)", phase.value, state.hops, self._config.max_hops)
            await self._run_phase(phase, state)
            state.phase = phase
            state.hops += 1
            phase = next_phase(state, self._config.max_hops)

    async def _run_phase(self, phase: DriftPhase, state: DriftState) -> None:
        if phase is DriftPhase.HYDE:
            await self._hyde(state)
        elif phase is DriftPhase.COMMUNITY_SEARCH:
            await self._community_search(state)
        elif phase is DriftPhase.PRIMER_ANSWER:
            await self._primer_answer(state)
        elif phase is DriftPhase.FOLLOWUP:
            await self._explorer.step(state)
        elif phase is DriftPhase.SYNTHESIS:
            await self._synthesis(state)
        else:
            raise ValueError(f"Phase {phase!r} cannot be executed")

    # --- Phases ---

    async def _hyde(self, state: DriftState) -> None:
        sample_summary = await self._sample_summary()
        result = await self._llm.call(
            output_schema=HydeOutput,
            input_params={"question": state.question, "sample_summary": sample_summary},
            system_prompts=[self._prompt(DriftPhase.HYDE)],
            temperature=self._config.hyde_temperature,
        )
        state.add_usage(result.token_usage)
        state.hypothetical_answer = result.data.hypothetical_answer
        state.hyde_embedding = await self._embedder.vectorise_text(state.hypothetical_answer)

    async def _sample_summary(self) -> str | None:
        """One real community report used as a style exemplar, if any."""
        try:
            communities = await self._repo.find_by_level(self._config.exemplar_level)
        except Exception as e:
            logger.warning("Exemplar community lookup failed: %s", e)
            return None
        for community in communities:
            if community.summary:
                return community.summary
        return None

    async def _community_search(self, state: DriftState) -> None:
        communities = await self._repo.find_by_vector(state.hyde_embedding, state.top_k)
        state.matched_communities = communities
        if not communities:
            logger.info("No communities matched, skipping to synthesis")
            state.initial_answer = NO_CONTEXT_ANSWER
            state.confidence = 0.0
            return
        state.community_summaries = "\n\n".join(
            f"## {c.name}\n{c.summary}" for c in communities if c.summary
        )

    async def _primer_answer(self, state: DriftState) -> None:
        result = await self._llm.call(
            output_schema=PrimerOutput,
            input_params={
                "question": state.question,
                "community_summaries": state.community_summaries,
                "community_count": len(state.matched_communities),
            },
            system_prompts=[self._prompt(DriftPhase.PRIMER_ANSWER)],
            temperature=self._config.primer_temperature,
        )
        state.add_usage(result.token_usage)
        out = result.data
        state.initial_answer = out.answer
        state.confidence = out.confidence
        state.follow_up_questions = list(out.follow_up_questions)
        state.prior_context = out.answer
        self._explorer.seed(state, state.follow_up_questions)
        logger.debug(
            "Primer answer: %d follow-ups proposed, %d queued, confidence %s",
            len(state.follow_up_questions), len(state.pending_questions), out.confidence,
        )

    async def _synthesis(self, state: DriftState) -> None:
        if not state.matched_communities:
            state.final_answer = state.initial_answer or NO_INFORMATION_ANSWER
            return

        if state.follow_up_answers:
            follow_ups = "\n\n".join(
                f"**Q: {f.question}**\n{f.answer}" for f in state.follow_up_answers
            )
        else:
            follow_ups = NO_FOLLOWUPS_PLACEHOLDER

        result = await self._llm.call(
            output_schema=SynthesisOutput,
            input_params={
                "question": state.question,
                "initial_answer": state.initial_answer,
                "follow_up_answers": follow_ups,
                "confidence": state.confidence,
            },
            system_prompts=[self._prompt(DriftPhase.SYNTHESIS)],
            temperature=self._config.synthesis_temperature,
        )
        state.add_usage(result.token_usage)
        state.final_answer = result.data.final_answer
