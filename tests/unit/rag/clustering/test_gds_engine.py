# tests/unit/rag/clustering/test_gds_engine.py — v1
"""Tests for rag/clustering/gds_engine.py and clustering_factory.py."""

from __future__ import annotations

import pytest

from graphdrift.config.settings import Settings
from graphdrift.rag.clustering.clustering_factory import (
    UnsupportedClusteringBackendError,
    create_clustering_engine,
)
from graphdrift.rag.clustering.gds_engine import GdsClusteringEngine
from graphdrift.rag.clustering.networkx_engine import NetworkXClusteringEngine


class TestGdsAvailability:
    @pytest.mark.asyncio
    async def test_available(self, make_graph_store):
        store = make_graph_store().on("gds.version()", [{"version": "2.6.0"}])
        assert await GdsClusteringEngine(store).is_available() is True

    @pytest.mark.asyncio
    async def test_probe_error_means_unavailable(self, make_graph_store):
        store = make_graph_store().on(
            "gds.version()", RuntimeError("Unknown function 'gds.version'")
        )
        assert await GdsClusteringEngine(store).is_available() is False

    @pytest.mark.asyncio
    async def test_empty_version_means_unavailable(self, graph_store):
        assert await GdsClusteringEngine(graph_store).is_available() is False


class TestGdsProjection:
    @pytest.mark.asyncio
    async def test_project_passes_scope_as_parameter(self, make_graph_store):
        store = make_graph_store().on(
            "gds.graph.project.cypher",
            [{"graphName": "g", "nodeCount": 12, "relationshipCount": 30}],
        )
        stats = await GdsClusteringEngine(store).project("g", "scope-1")

        query, params = store.reads[0]
        assert params == {"graphName": "g", "scopeId": "scope-1"}
        assert "{parameters: {scopeId: $scopeId}}" in query
        assert stats.node_count == 12
        assert stats.relationship_count == 30

    @pytest.mark.asyncio
    async def test_stream_clusters_maps_concepts(self, make_graph_store):
        store = make_graph_store().on(
            "gds.louvain.stream",
            [
                {"conceptId": "c1", "communityId": 4},
                {"conceptId": "c2", "communityId": 4},
                {"conceptId": "c3", "communityId": 9},
            ],
        )
        assignments = await GdsClusteringEngine(store).stream_clusters("g", 0.5)

        assert assignments == {"c1": 4, "c2": 4, "c3": 9}
        assert store.reads[0][1] == {"graphName": "g", "resolution": 0.5}

    @pytest.mark.asyncio
    async def test_drop_does_not_fail_on_missing(self, graph_store):
        await GdsClusteringEngine(graph_store).drop("g")
        query, params = graph_store.writes[0]
        assert "gds.graph.drop($graphName, false)" in query
        assert params == {"graphName": "g"}


class TestClusteringFactory:
    def test_gds(self, graph_store):
        engine = create_clustering_engine(Settings(_env_file=None), graph_store)
        assert isinstance(engine, GdsClusteringEngine)
        assert engine.backend_name == "gds"

    def test_networkx(self, graph_store):
        s = Settings(_env_file=None, clustering_backend="networkx")
        assert isinstance(create_clustering_engine(s, graph_store), NetworkXClusteringEngine)

    def test_unsupported(self, graph_store):
        s = Settings(_env_file=None)
        s.clustering_backend = "leiden"  # type: ignore[assignment]
        with pytest.raises(UnsupportedClusteringBackendError):
            create_clustering_engine(s, graph_store)
