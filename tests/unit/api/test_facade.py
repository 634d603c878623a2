# tests/unit/api/test_facade.py — v2
"""Tests for api/facade.py — service wiring."""

from __future__ import annotations

import pytest

from graphdrift.api.facade import build_services
from graphdrift.config.settings import Settings
from graphdrift.rag.clustering.networkx_engine import NetworkXClusteringEngine


def _services(graph_store, fake_llm, fake_embedder, **overrides):
    settings = Settings(_env_file=None, clustering_backend="networkx", **overrides)
    return build_services(
        settings, graph_store=graph_store, llm=fake_llm, embedder=fake_embedder
    )


class TestBuildServices:
    def test_shares_one_lock_registry(self, graph_store, fake_llm, fake_embedder):
        services = _services(graph_store, fake_llm, fake_embedder)
        assert services.staleness._locks is services.detector.locks

    def test_settings_flow_into_services(self, graph_store, fake_llm, fake_embedder):
        services = _services(
            graph_store, fake_llm, fake_embedder,
            community_resolutions="2.0,1.0", community_min_size=5, drift_max_depth=4,
        )
        assert services.detector._resolutions == [2.0, 1.0]
        assert services.detector._min_size == 5
        assert isinstance(services.detector._engine, NetworkXClusteringEngine)
        assert services.drift.config.max_depth == 4

    def test_one_repository(self, graph_store, fake_llm, fake_embedder):
        services = _services(graph_store, fake_llm, fake_embedder)
        assert services.detector._repo is services.repository
        assert services.drift._repo is services.repository

    @pytest.mark.asyncio
    async def test_ensure_schema_uses_embedding_dimensions(
        self, graph_store, fake_llm, fake_embedder
    ):
        services = _services(graph_store, fake_llm, fake_embedder, embedding_dimensions=384)
        await services.ensure_schema()
        assert "`vector.dimensions`: 384" in graph_store.writes[-1][0]

    @pytest.mark.asyncio
    async def test_close(self, graph_store, fake_llm, fake_embedder):
        services = _services(graph_store, fake_llm, fake_embedder)
        await services.close()
        assert graph_store.closed
