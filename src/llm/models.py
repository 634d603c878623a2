# src/llm/models.py — v2
"""LLM-specific types: Message, LLMResponse."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

from graphdrift.core.models import TokenUsage


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class LLMResponse(BaseModel):
    """Normalized response from any LLM provider.

    Token counts are None when the provider does not report them.
    """

    content: str
    input_tokens: int | None = None
    output_tokens: int | None = None
    model: str
    provider: str
    latency_ms: int = 0
    raw_response: Any = None

    @property
    def token_usage(self) -> TokenUsage:
        return TokenUsage(input=self.input_tokens, output=self.output_tokens)
