# src/llm/base_client.py — v2
"""Abstract LLM client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from graphdrift.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Text completion.

        When ``response_format`` is given the provider is asked for JSON
        matching the model's schema; the returned ``content`` is that JSON.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai, ollama)."""
