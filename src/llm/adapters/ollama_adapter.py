# src/llm/adapters/ollama_adapter.py — v2
"""Ollama local LLM adapter implementing BaseLLMClient."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel

from graphdrift.llm.base_client import BaseLLMClient
from graphdrift.llm.models import LLMResponse, Message


class OllamaAdapter(BaseLLMClient):
    """Ollama local inference adapter."""

    def __init__(
        self, model: str = "llama3", host: str = "http://localhost:11434", **kwargs: Any,
    ):
        self._model = model
        self._host = host

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        try:
            import ollama
        except ImportError as e:
            raise ImportError("ollama package required: pip install ollama") from e

        client = ollama.AsyncClient(host=self._host)
        msgs: list[dict[str, str]] = []
        if system:
            msgs.append({"role": "system", "content": system})
        for m in messages:
            msgs.append({"role": m.role, "content": m.content})

        options: dict[str, Any] = {
            "num_predict": max_tokens,
            "temperature": temperature,
        }
        kwargs: dict[str, Any] = {"model": self._model, "messages": msgs, "options": options}
        if response_format is not None:
            kwargs["format"] = response_format.model_json_schema()

        t0 = time.monotonic()
        resp = await client.chat(**kwargs)
        latency = int((time.monotonic() - t0) * 1000)

        # Ollama omits eval counts when the prompt was served from cache
        return LLMResponse(
            content=resp["message"]["content"],
            input_tokens=resp.get("prompt_eval_count"),
            output_tokens=resp.get("eval_count"),
            model=self._model,
            provider="ollama",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "ollama"
