# tests/conftest.py — v2
"""Shared test fixtures for all unit tests.

Provides an in-memory graph store that answers queries by substring, a
scripted structured LLM, a deterministic embedder and a scope fixture.
No external dependencies — all I/O is faked.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from pydantic import BaseModel

from graphdrift.core.models import TokenUsage
from graphdrift.core.scope import scope_context
from graphdrift.llm.structured import StructuredOutput
from graphdrift.logging.context import clear_context
from graphdrift.rag.embeddings.base_embedder import BaseEmbedder
from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore, CypherStatement


# === FAKES ===


class FakeGraphStore(BaseGraphStore):
    """Answers reads from (substring, rows) rules; records every query.

    A rule's rows may be a list or a callable taking the params. The first
    rule whose substring occurs in the query wins; unmatched reads return [].
    """

    def __init__(self, rules: list[tuple[str, Any]] | None = None) -> None:
        self.rules: list[tuple[str, Any]] = list(rules or [])
        self.reads: list[tuple[str, dict]] = []
        self.writes: list[tuple[str, dict]] = []
        self.transactions: list[list[CypherStatement]] = []
        self.closed = False

    def on(self, fragment: str, rows: Any) -> FakeGraphStore:
        self.rules.append((fragment, rows))
        return self

    async def read(self, query: str, params: dict[str, Any] | None = None) -> list[dict]:
        params = dict(params or {})
        self.reads.append((query, params))
        for fragment, rows in self.rules:
            if fragment in query:
                if isinstance(rows, Exception):
                    raise rows
                return list(rows(params) if callable(rows) else rows)
        return []

    async def write_one(self, query: str, params: dict[str, Any] | None = None) -> None:
        self.writes.append((query, dict(params or {})))

    async def execute_in_transaction(self, statements: list[CypherStatement]) -> None:
        self.transactions.append(list(statements))

    async def close(self) -> None:
        self.closed = True

    @property
    def provider_name(self) -> str:
        return "fake"


class FakeStructuredLLM:
    """Stands in for StructuredLLM; replies are scripted per output schema.

    Each script entry is either a dict (validated into the schema) or a
    callable taking the input params and returning such a dict. The last
    entry of a schema repeats once the others are consumed.
    """

    def __init__(self, usage: TokenUsage | None = None) -> None:
        self.scripts: dict[str, list[Any]] = {}
        self.usages: dict[str, list[TokenUsage]] = {}
        self.default_usage = usage or TokenUsage(input=10, output=5)
        self.calls: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    def script(
        self,
        schema: type[BaseModel],
        *replies: dict[str, Any] | Callable[[dict[str, Any]], dict[str, Any]],
        usage: TokenUsage | list[TokenUsage] | None = None,
    ) -> FakeStructuredLLM:
        self.scripts[schema.__name__] = list(replies)
        if usage is not None:
            self.usages[schema.__name__] = usage if isinstance(usage, list) else [usage]
        return self

    def calls_for(self, schema: type[BaseModel]) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["schema"] is schema]

    async def call(
        self,
        output_schema: type[BaseModel],
        input_params: dict[str, Any],
        system_prompts: list[str],
        temperature: float = 0.3,
    ) -> StructuredOutput:
        name = output_schema.__name__
        self.calls.append(
            {
                "schema": output_schema,
                "input_params": dict(input_params),
                "system_prompts": list(system_prompts),
                "temperature": temperature,
            }
        )
        replies = self.scripts.get(name)
        if not replies:
            raise AssertionError(f"No scripted reply for {name}")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        payload = reply(input_params) if callable(reply) else reply

        usages = self.usages.get(name)
        if usages:
            usage = usages.pop(0) if len(usages) > 1 else usages[0]
        else:
            usage = self.default_usage
        return StructuredOutput(data=output_schema.model_validate(payload), token_usage=usage)


class FakeEmbedder(BaseEmbedder):
    """Deterministic 4-dimensional vectors derived from text length."""

    def __init__(self) -> None:
        self.texts: list[str] = []

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.texts.extend(texts)
        return [[float(len(t)), 1.0, 0.0, 0.5] for t in texts]

    async def embed_query(self, query: str) -> list[float]:
        return (await self.embed_texts([query]))[0]

    @property
    def dimensions(self) -> int:
        return 4

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "fake-embed"


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _reset_log_context() -> Iterator[None]:
    yield
    clear_context()


@pytest.fixture
def scope() -> Iterator[str]:
    """Run the test inside scope 'scope-1'."""
    with scope_context("scope-1") as scope_id:
        yield scope_id


@pytest.fixture
def graph_store() -> FakeGraphStore:
    return FakeGraphStore()


@pytest.fixture
def fake_llm() -> FakeStructuredLLM:
    return FakeStructuredLLM()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def make_graph_store() -> type[FakeGraphStore]:
    """The FakeGraphStore class, for tests that need several stores."""
    return FakeGraphStore
