# tests/unit/drift/test_engine.py — v1
"""Tests for drift/engine.py — the DRIFT search driver."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from graphdrift.community.models import Community, MemberConcept
from graphdrift.community.repository import CommunityRepository
from graphdrift.core.models import TokenUsage
from graphdrift.core.scope import ScopeNotSetError, scope_context
from graphdrift.drift.engine import DriftSearchEngine
from graphdrift.drift.models import (
    NO_CONTEXT_ANSWER,
    NO_FOLLOWUPS_PLACEHOLDER,
    DriftConfig,
    DriftPhase,
    FollowUpOutput,
    HydeOutput,
    PrimerOutput,
    SynthesisOutput,
)
from graphdrift.llm.structured import LLMOutputError
from graphdrift.logging.context import get_context

PROMPTS = {
    DriftPhase.HYDE: "hyde",
    DriftPhase.PRIMER_ANSWER: "primer",
    DriftPhase.SYNTHESIS: "synthesis",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _communities(n: int) -> list[Community]:
    return [
        Community(id=f"c{i}", level=1, name=f"Community {i}", summary=f"Summary {i}",
                  is_stale=False)
        for i in range(n)
    ]


def _repo(matched: list[Community] | None = None) -> AsyncMock:
    repo = AsyncMock(spec=CommunityRepository)
    repo.find_by_level.return_value = [
        Community(id="x", level=1), Community(id="y", level=1, summary="Exemplar report."),
    ]
    repo.find_by_vector.return_value = _communities(2) if matched is None else matched
    repo.find_by_id.side_effect = lambda cid: Community(id=cid, level=1, name=f"Name {cid}")
    repo.find_member_key_concepts.return_value = [MemberConcept(id="k", value="Battery")]
    repo.find_member_relationships.return_value = []
    return repo


def _script(fake_llm, *, questions=("q1", "q2"), followup=None):
    fake_llm.script(HydeOutput, {"hypothetical_answer": "A hypothetical report."})
    fake_llm.script(
        PrimerOutput,
        {"answer": "Initial.", "follow_up_questions": list(questions), "confidence": 70},
    )
    fake_llm.script(FollowUpOutput, followup or {"answer": "Detail."})
    fake_llm.script(SynthesisOutput, {"final_answer": "Final."})
    return fake_llm


def _engine(repo, fake_llm, fake_embedder, **config) -> DriftSearchEngine:
    return DriftSearchEngine(
        repo, fake_llm, fake_embedder, config=DriftConfig(**config), system_prompts=PROMPTS
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestSearch:
    @pytest.mark.asyncio
    async def test_requires_scope(self, fake_llm, fake_embedder):
        _script(fake_llm)
        with pytest.raises(ScopeNotSetError):
            await _engine(_repo(), fake_llm, fake_embedder).search("Why?")

    @pytest.mark.asyncio
    async def test_full_run(self, fake_llm, fake_embedder):
        _script(fake_llm)
        repo = _repo()
        engine = _engine(repo, fake_llm, fake_embedder, top_k=4, max_depth=1)

        with scope_context("acme"):
            result = await engine.search("Who supplies batteries?")

        assert result.answer == "Final."
        assert result.initial_answer == "Initial."
        assert result.confidence == 70
        assert [c.id for c in result.matched_communities] == ["c0", "c1"]
        assert [f.question for f in result.follow_up_answers] == ["q1", "q2"]
        # hyde, search, primer, 2 answers + 1 exhausted step, synthesis
        assert result.hops == 7
        repo.find_by_vector.assert_awaited_once()
        assert repo.find_by_vector.await_args.args[1] == 4
        assert result.hyde_embedding == [float(len("A hypothetical report.")), 1.0, 0.0, 0.5]
        assert fake_embedder.texts == ["A hypothetical report."]

    @pytest.mark.asyncio
    async def test_phase_inputs(self, fake_llm, fake_embedder):
        _script(fake_llm)
        with scope_context("acme"):
            await _engine(_repo(), fake_llm, fake_embedder, max_depth=1).search("Why?")

        hyde = fake_llm.calls_for(HydeOutput)[0]
        assert hyde["input_params"] == {"question": "Why?", "sample_summary": "Exemplar report."}
        assert hyde["system_prompts"] == ["hyde"]
        assert hyde["temperature"] == 0.5

        primer = fake_llm.calls_for(PrimerOutput)[0]["input_params"]
        assert primer["community_summaries"] == (
            "## Community 0\nSummary 0\n\n## Community 1\nSummary 1"
        )
        assert primer["community_count"] == 2

        synthesis = fake_llm.calls_for(SynthesisOutput)[0]["input_params"]
        assert synthesis["initial_answer"] == "Initial."
        assert synthesis["follow_up_answers"] == "**Q: q1**\nDetail.\n\n**Q: q2**\nDetail."
        assert synthesis["confidence"] == 70

    @pytest.mark.asyncio
    async def test_zero_matches_short_circuits(self, fake_llm, fake_embedder):
        _script(fake_llm)
        with scope_context("acme"):
            result = await _engine(_repo(matched=[]), fake_llm, fake_embedder).search("Why?")

        assert result.answer == NO_CONTEXT_ANSWER
        assert result.confidence == 0
        assert result.hops == 3
        assert [c["schema"] for c in fake_llm.calls] == [HydeOutput]
        assert result.token_usage == TokenUsage(input=10, output=5)

    @pytest.mark.asyncio
    async def test_max_depth_zero_skips_followups(self, fake_llm, fake_embedder):
        _script(fake_llm)
        with scope_context("acme"):
            result = await _engine(_repo(), fake_llm, fake_embedder).search("Why?", max_depth=0)

        assert result.follow_up_answers == []
        assert fake_llm.calls_for(FollowUpOutput) == []
        synthesis = fake_llm.calls_for(SynthesisOutput)[0]["input_params"]
        assert synthesis["follow_up_answers"] == NO_FOLLOWUPS_PLACEHOLDER
        assert result.hops == 4

    @pytest.mark.asyncio
    async def test_no_primer_questions(self, fake_llm, fake_embedder):
        _script(fake_llm, questions=())
        with scope_context("acme"):
            result = await _engine(_repo(), fake_llm, fake_embedder).search("Why?")
        assert result.follow_up_answers == []
        assert result.answer == "Final."

    @pytest.mark.asyncio
    async def test_quick_search(self, fake_llm, fake_embedder):
        _script(fake_llm)
        with scope_context("acme"):
            result = await _engine(_repo(), fake_llm, fake_embedder, max_depth=3).quick_search(
                "Why?", top_k=2
            )
        assert result.follow_up_answers == []
        assert result.answer == "Final."

    @pytest.mark.asyncio
    async def test_token_usage_summed_with_unknown_counts(self, fake_llm, fake_embedder):
        fake_llm.script(HydeOutput, {"hypothetical_answer": "H"},
                        usage=TokenUsage(input=100, output=20))
        fake_llm.script(PrimerOutput, {"answer": "I", "follow_up_questions": ["q1", "q2"]},
                        usage=TokenUsage(input=None, output=30))
        fake_llm.script(FollowUpOutput, {"answer": "D"},
                        usage=[TokenUsage(input=7, output=None), TokenUsage(input=3, output=4)])
        fake_llm.script(SynthesisOutput, {"final_answer": "F"},
                        usage=TokenUsage(input=50, output=None))

        with scope_context("acme"):
            result = await _engine(_repo(), fake_llm, fake_embedder, max_depth=1).search("Why?")

        assert result.token_usage == TokenUsage(input=160, output=54)

    @pytest.mark.asyncio
    async def test_followups_bounded_when_llm_always_continues(self, fake_llm, fake_embedder):
        _script(
            fake_llm,
            questions=[f"p{i}" for i in range(6)],
            followup=lambda params: {
                "answer": "More.",
                "additional_questions": [f"{params['follow_up_question']}-{i}" for i in range(5)],
                "should_continue": True,
            },
        )
        engine = _engine(_repo(), fake_llm, fake_embedder, max_depth=3, per_step_cap=2, max_hops=50)

        with scope_context("acme"):
            result = await engine.search("Why?")

        assert len(result.follow_up_answers) == 6
        assert [f.depth for f in result.follow_up_answers] == [0, 0, 1, 1, 2, 2]
        assert len(fake_llm.calls_for(SynthesisOutput)) == 1

    @pytest.mark.asyncio
    async def test_hop_ceiling_forces_synthesis(self, fake_llm, fake_embedder):
        _script(
            fake_llm,
            questions=["q1", "q2", "q3"],
            followup={"answer": "More.", "additional_questions": ["n"], "should_continue": True},
        )
        engine = _engine(_repo(), fake_llm, fake_embedder, max_depth=5, max_hops=5)

        with scope_context("acme"):
            result = await engine.search("Why?")

        assert len(result.follow_up_answers) == 2
        assert result.hops == 6
        assert result.answer == "Final."
        assert len(fake_llm.calls_for(SynthesisOutput)) == 1

    @pytest.mark.asyncio
    async def test_exemplar_lookup_failure_tolerated(self, fake_llm, fake_embedder):
        _script(fake_llm)
        repo = _repo()
        repo.find_by_level.side_effect = RuntimeError("index offline")

        with scope_context("acme"):
            result = await _engine(repo, fake_llm, fake_embedder).search("Why?")

        assert result.answer == "Final."
        assert fake_llm.calls_for(HydeOutput)[0]["input_params"]["sample_summary"] is None

    @pytest.mark.asyncio
    async def test_community_details_loaded_once(self, fake_llm, fake_embedder):
        _script(fake_llm, questions=["q1", "q2", "q3"])
        repo = _repo(matched=_communities(5))

        with scope_context("acme"):
            await _engine(repo, fake_llm, fake_embedder, detail_limit=3, max_depth=1).search("Why?")

        assert repo.find_member_key_concepts.await_count == 3
        details = fake_llm.calls_for(FollowUpOutput)[0]["input_params"]["community_details"]
        assert details.count("## Name") == 3

    @pytest.mark.asyncio
    async def test_llm_error_propagates_and_clears_phase(self, fake_llm, fake_embedder):
        _script(fake_llm)

        async def broken(**kwargs):
            raise LLMOutputError("PrimerOutput: reply is not valid JSON")

        repo = _repo()
        engine = _engine(repo, fake_llm, fake_embedder)
        fake_llm.call = AsyncMock(side_effect=broken)

        with scope_context("acme"):
            with pytest.raises(LLMOutputError):
                await engine.search("Why?")
        assert get_context().phase is None

    @pytest.mark.asyncio
    async def test_independent_runs(self, fake_llm, fake_embedder):
        _script(fake_llm)
        engine = _engine(_repo(), fake_llm, fake_embedder, max_depth=1)
        with scope_context("acme"):
            first = await engine.search("Why?")
            second = await engine.search("Why?")
        assert len(first.follow_up_answers) == len(second.follow_up_answers) == 2
        assert first.token_usage == second.token_usage
