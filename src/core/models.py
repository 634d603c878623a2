# src/core/models.py — v1
"""Shared Pydantic models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

from pydantic import BaseModel


class Scope(BaseModel):
    """Tenant scope owning a concept graph and its communities."""

    id: str
    name: str = ""


class TokenUsage(BaseModel):
    """Input/output token counts for one or more LLM calls.

    Either count may be unknown (None) for a single call; accumulated
    totals treat unknown counts as zero.
    """

    input: int | None = 0
    output: int | None = 0

    @property
    def total(self) -> int:
        return (self.input or 0) + (self.output or 0)

    def add(self, other: TokenUsage | None) -> TokenUsage:
        """Return a new TokenUsage holding the sum of both operands."""
        if other is None:
            return TokenUsage(input=self.input or 0, output=self.output or 0)
        return TokenUsage(
            input=(self.input or 0) + (other.input or 0),
            output=(self.output or 0) + (other.output or 0),
        )
