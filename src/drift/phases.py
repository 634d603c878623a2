# src/drift/phases.py — v1
"""DRIFT phase transitions.

``next_phase`` is a pure function of the state: the engine's driver loop
calls it after every phase and runs whatever it returns.
"""

from __future__ import annotations

from graphdrift.drift.models import DriftPhase, DriftState


def next_phase(state: DriftState, max_hops: int) -> DriftPhase:
    """Phase to run after ``state.phase``.

    SYNTHESIS is always followed by END. Any other phase moves to
    SYNTHESIS once ``state.hops`` reaches ``max_hops``.
    """
    current = state.phase
    if current is DriftPhase.SYNTHESIS or current is DriftPhase.END:
        return DriftPhase.END
    if current is None:
        return DriftPhase.HYDE
    if state.hops >= max_hops:
        return DriftPhase.SYNTHESIS

    if current is DriftPhase.HYDE:
        return DriftPhase.COMMUNITY_SEARCH
    if current is DriftPhase.COMMUNITY_SEARCH:
        if not state.matched_communities:
            return DriftPhase.SYNTHESIS
        return DriftPhase.PRIMER_ANSWER
    if current is DriftPhase.PRIMER_ANSWER:
        return DriftPhase.FOLLOWUP if state.pending_questions else DriftPhase.SYNTHESIS
    if current is DriftPhase.FOLLOWUP:
        return DriftPhase.SYNTHESIS if state.exploration_done else DriftPhase.FOLLOWUP
    raise ValueError(f"Unknown DRIFT phase: {current!r}")
