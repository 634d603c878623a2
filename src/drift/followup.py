# src/drift/followup.py — v1
"""Follow-up exploration: bounded iterative deepening over a question worklist.

Each ``step`` either answers one pending question or, when the current
depth's queue is empty, promotes suggested questions to the next depth.
Depth ``d`` holds at most ``per_step_cap`` questions and depths run from 0
to ``max_depth - 1``, so a run makes at most ``max_depth * per_step_cap``
LLM calls.
"""

from __future__ import annotations

import logging
from pathlib import Path

from graphdrift.community.models import MemberConcept, MemberRelationship
from graphdrift.community.repository import CommunityRepository
from graphdrift.drift.models import DriftState, FollowUpAnswer, FollowUpOutput
from graphdrift.llm.structured import StructuredLLM

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "drift_followup.txt"

DETAIL_SEPARATOR = "\n\n---\n\n"


class FollowUpExplorer:
    """Answers follow-up questions against matched communities' members."""

    def __init__(
        self,
        repository: CommunityRepository,
        llm: StructuredLLM,
        per_step_cap: int = 3,
        detail_limit: int = 3,
        temperature: float = 0.3,
        system_prompt: str | None = None,
    ) -> None:
        self._repo = repository
        self._llm = llm
        self._per_step_cap = per_step_cap
        self._detail_limit = detail_limit
        self._temperature = temperature
        self._system_prompt = system_prompt

    @property
    def per_step_cap(self) -> int:
        return self._per_step_cap

    def _load_prompt(self) -> str:
        if self._system_prompt is None:
            self._system_prompt = _PROMPT_PATH.read_text(encoding="utf-8")
        return self._system_prompt

    def seed(self, state: DriftState, questions: list[str]) -> None:
        """Queue the primer's questions as depth 0 (nothing when max_depth is 0)."""
        state.current_depth = 0
        state.exploration_done = False
        if state.max_depth <= 0:
            state.pending_questions = []
        else:
            state.pending_questions = list(questions[: self._per_step_cap])

    async def step(self, state: DriftState) -> None:
        if state.pending_questions:
            await self._answer_next(state)
        else:
            self._advance_depth(state)

    async def _answer_next(self, state: DriftState) -> None:
        question = state.pending_questions.pop(0)
        if state.community_details is None:
            state.community_details = await self.gather_community_details(
                [c.id for c in state.matched_communities]
            )

        result = await self._llm.call(
            output_schema=FollowUpOutput,
            input_params={
                "original_question": state.question,
                "follow_up_question": question,
                "prior_context": state.prior_context,
                "community_details": state.community_details,
            },
            system_prompts=[self._load_prompt()],
            temperature=self._temperature,
        )
        out = result.data
        state.add_usage(result.token_usage)
        state.follow_up_answers.append(
            FollowUpAnswer(
                question=question,
                answer=out.answer,
                depth=state.current_depth,
                additional_questions=list(out.additional_questions),
                should_continue=out.should_continue,
            )
        )
        state.prior_context = f"{state.prior_context}\n\nQ: {question}\nA: {out.answer}"
        logger.debug(
            "Answered follow-up at depth %d, %d additional questions",
            state.current_depth, len(out.additional_questions),
        )

    def _advance_depth(self, state: DriftState) -> None:
        collected = collect_additional_questions(state.follow_up_answers)
        if collected and state.current_depth + 1 < state.max_depth:
            state.current_depth += 1
            state.pending_questions = collected[: self._per_step_cap]
            logger.debug(
                "Follow-up depth %d: %d questions queued",
                state.current_depth, len(state.pending_questions),
            )
            return
        state.exploration_done = True

    async def gather_community_details(self, community_ids: list[str]) -> str:
        """Member and relationship listing for the first matched communities.

        A community whose lookup fails is logged and left out.
        """
        details: list[str] = []
        for community_id in community_ids[: self._detail_limit]:
            try:
                community = await self._repo.find_by_id(community_id)
                if community is None:
                    continue
                members = await self._repo.find_member_key_concepts(community_id)
                relationships = await self._repo.find_member_relationships(community_id)
            except Exception as e:
                logger.warning(
                    "Failed to gather details for community %s: %s", community_id, e
                )
                continue
            details.append(format_community_detail(community.name, members, relationships))
        return DETAIL_SEPARATOR.join(details)


def collect_additional_questions(answers: list[FollowUpAnswer]) -> list[str]:
    """Every additional question of answers that asked to continue, in order."""
    questions: list[str] = []
    for answer in answers:
        if answer.should_continue and answer.additional_questions:
            questions.extend(answer.additional_questions)
    return questions


def format_community_detail(
    name: str,
    members: list[MemberConcept],
    relationships: list[MemberRelationship],
) -> str:
    member_lines = "\n".join(
        f"  - {m.value}{f' - {m.description}' if m.description else ''}" for m in members
    )
    if relationships:
        rel_lines = "\n".join(f"  - {r.a} <-> {r.b}" for r in relationships)
    else:
        rel_lines = "  (no explicit relationships)"
    return f"## {name}\n\nMembers:\n{member_lines}\n\nRelationships:\n{rel_lines}"
