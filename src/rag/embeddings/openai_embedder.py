# src/rag/embeddings/openai_embedder.py — v3
"""OpenAI embedding adapter for community reports and HyDE answers.

Vectors are requested at the configured ``dimensions`` so they match the
``communities`` vector index. Large batches are split into requests of at
most ``batch_size`` inputs.
"""

from __future__ import annotations

import logging

from graphdrift.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)

MAX_INPUTS_PER_REQUEST = 2048


class OpenAIEmbedder(BaseEmbedder):
    """Embeddings via the OpenAI embeddings endpoint."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        dimensions: int = 1536,
        batch_size: int = MAX_INPUTS_PER_REQUEST,
    ) -> None:
        if not 1 <= batch_size <= MAX_INPUTS_PER_REQUEST:
            raise ValueError(
                f"batch_size must be between 1 and {MAX_INPUTS_PER_REQUEST}, got {batch_size}"
            )
        self._model = model
        self._api_key = api_key
        self._dimensions = dimensions
        self._batch_size = batch_size
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            try:
                import openai
            except ImportError as e:
                raise ImportError("openai package required: pip install openai") from e
            self.__client = openai.AsyncOpenAI(api_key=self._api_key or "")
        return self.__client

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in input order, one request per batch."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = texts[start:start + self._batch_size]
            vectors.extend(await self._embed_batch(batch))
        return vectors

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        response = await self._client.embeddings.create(
            input=batch, model=self._model, dimensions=self._dimensions
        )
        items = sorted(response.data, key=lambda item: item.index)
        if len(items) != len(batch):
            raise RuntimeError(
                f"OpenAI returned {len(items)} embeddings for {len(batch)} texts "
                f"(model {self._model})"
            )
        logger.debug("Embedded %d texts with %s", len(batch), self._model)
        return [list(item.embedding) for item in items]

    async def embed_query(self, query: str) -> list[float]:
        vectors = await self.embed_texts([query])
        return vectors[0]

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model
