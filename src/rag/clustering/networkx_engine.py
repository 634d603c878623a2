# src/rag/clustering/networkx_engine.py — v1
"""In-process Louvain clustering with NetworkX.

Loads the scope's concept graph into memory and runs
``networkx.community.louvain_communities``. Meant for development setups
without the GDS plugin and for small scopes.
"""

from __future__ import annotations

import logging
from typing import Any

import networkx as nx

from graphdrift.rag.clustering.base_clustering_engine import (
    BaseClusteringEngine,
    ProjectionStats,
)
from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore

logger = logging.getLogger(__name__)

_NODES_QUERY = """
MATCH (c:Concept)-[:BELONGS_TO]->(:Scope {id: $scopeId})
RETURN c.id AS id
"""

# Each relationship node matches in both directions; keep one.
_EDGES_QUERY = """
MATCH (c1:Concept)<-[:RELATES_TO]-(rel:ConceptRelationship)-[:RELATES_TO]->(c2:Concept)
MATCH (rel)-[:BELONGS_TO]->(:Scope {id: $scopeId})
WHERE c1.id < c2.id
RETURN c1.id AS source, c2.id AS target, coalesce(rel.weight, 1.0) AS weight
"""


class NetworkXClusteringEngine(BaseClusteringEngine):
    """Louvain clustering on an in-memory NetworkX graph."""

    def __init__(self, graph_store: BaseGraphStore, seed: int | None = 42) -> None:
        self._store = graph_store
        self._seed = seed
        self._projections: dict[str, Any] = {}

    async def is_available(self) -> bool:
        return True

    async def project(self, graph_name: str, scope_id: str) -> ProjectionStats:
        node_ids = await self._store.read_many(_NODES_QUERY, {"scopeId": scope_id})
        edges = await self._store.read(_EDGES_QUERY, {"scopeId": scope_id})

        graph = nx.Graph()
        graph.add_nodes_from(node_ids)
        for edge in edges:
            src, tgt = edge["source"], edge["target"]
            weight = float(edge["weight"])
            # Parallel relationships between the same pair add up
            if graph.has_edge(src, tgt):
                graph[src][tgt]["weight"] += weight
            else:
                graph.add_edge(src, tgt, weight=weight)

        self._projections[graph_name] = graph
        logger.debug(
            "Graph projected in memory: %d nodes, %d edges",
            graph.number_of_nodes(), graph.number_of_edges(),
        )
        return ProjectionStats(
            graph_name=graph_name,
            node_count=graph.number_of_nodes(),
            relationship_count=graph.number_of_edges(),
        )

    async def stream_clusters(self, graph_name: str, resolution: float) -> dict[str, int]:
        graph = self._projections.get(graph_name)
        if graph is None:
            raise KeyError(f"Unknown projection: {graph_name!r}")
        if graph.number_of_nodes() == 0:
            return {}

        communities = nx.community.louvain_communities(
            graph, weight="weight", resolution=resolution, seed=self._seed
        )
        assignments: dict[str, int] = {}
        for cid, members in enumerate(communities):
            for node in members:
                assignments[node] = cid
        return assignments

    async def drop(self, graph_name: str) -> None:
        self._projections.pop(graph_name, None)

    @property
    def backend_name(self) -> str:
        return "networkx"
