# src/llm/structured.py — v1
"""Structured LLM calls: prompt in, validated Pydantic model out.

``StructuredLLM.call`` renders the input parameters into a single user
message, asks the provider for JSON matching ``output_schema`` and parses
the reply. The token usage of the call travels with the parsed data so
callers can accumulate it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from graphdrift.core.models import TokenUsage
from graphdrift.llm.base_client import BaseLLMClient
from graphdrift.llm.models import Message

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LLMOutputError(Exception):
    """Raised when the LLM reply cannot be parsed into the requested schema."""


@dataclass(frozen=True)
class StructuredOutput(Generic[T]):
    """Parsed reply plus the token usage of the call that produced it."""

    data: T
    token_usage: TokenUsage


class StructuredLLM:
    """Thin structured-output layer over a BaseLLMClient."""

    def __init__(self, client: BaseLLMClient, max_tokens: int = 4096) -> None:
        self._client = client
        self._max_tokens = max_tokens

    @property
    def provider_name(self) -> str:
        return self._client.provider_name

    async def call(
        self,
        output_schema: type[T],
        input_params: dict[str, Any],
        system_prompts: list[str],
        temperature: float = 0.3,
    ) -> StructuredOutput[T]:
        """Call the LLM and parse its reply into ``output_schema``.

        Raises:
            LLMOutputError: If the reply is not valid JSON for the schema.
        """
        response = await self._client.complete(
            messages=[Message(role="user", content=render_input_params(input_params))],
            system="\n\n".join(p.strip() for p in system_prompts if p.strip()) or None,
            max_tokens=self._max_tokens,
            temperature=temperature,
            response_format=output_schema,
        )
        data = parse_structured_response(response.content, output_schema)
        logger.debug(
            "Structured call %s: in=%s out=%s",
            output_schema.__name__, response.input_tokens, response.output_tokens,
        )
        return StructuredOutput(data=data, token_usage=response.token_usage)


def render_input_params(input_params: dict[str, Any]) -> str:
    """Render parameters as ``name: value`` blocks; None values are omitted."""
    blocks: list[str] = []
    for key, value in input_params.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            value = json.dumps(value, ensure_ascii=False, indent=2)
        blocks.append(f"{key}: {value}")
    return "\n\n".join(blocks)


def parse_structured_response(raw: str, output_schema: type[T]) -> T:
    """Parse a JSON reply, tolerating markdown code fences."""
    text = raw.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = [ln for ln in lines if not ln.strip().startswith("```")]
        text = "\n".join(lines)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMOutputError(
            f"{output_schema.__name__}: reply is not valid JSON ({e.msg})"
        ) from e

    try:
        return output_schema.model_validate(payload)
    except ValidationError as e:
        raise LLMOutputError(
            f"{output_schema.__name__}: reply does not match schema: {e}"
        ) from e
