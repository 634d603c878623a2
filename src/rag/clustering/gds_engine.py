# src/rag/clustering/gds_engine.py — v1
"""Neo4j Graph Data Science clustering engine (Louvain).

Projection, clustering and drop run as Cypher procedure calls through the
graph store, so the concept graph never leaves the database.
"""

from __future__ import annotations

import logging

from graphdrift.rag.clustering.base_clustering_engine import (
    BaseClusteringEngine,
    ProjectionStats,
)
from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore

logger = logging.getLogger(__name__)

_VERSION_QUERY = "RETURN gds.version() AS version"

_PROJECT_QUERY = """
CALL gds.graph.project.cypher(
  $graphName,
  'MATCH (c:Concept)-[:BELONGS_TO]->(:Scope {id: $scopeId})
   RETURN id(c) AS id',
  'MATCH (c1:Concept)<-[:RELATES_TO]-(rel:ConceptRelationship)-[:RELATES_TO]->(c2:Concept)
   MATCH (rel)-[:BELONGS_TO]->(:Scope {id: $scopeId})
   RETURN id(c1) AS source, id(c2) AS target, coalesce(rel.weight, 1.0) AS weight',
  {parameters: {scopeId: $scopeId}}
)
YIELD graphName, nodeCount, relationshipCount
RETURN graphName, nodeCount, relationshipCount
"""

_LOUVAIN_QUERY = """
CALL gds.louvain.stream($graphName, {
  relationshipWeightProperty: 'weight',
  includeIntermediateCommunities: false,
  resolution: $resolution
})
YIELD nodeId, communityId
WITH gds.util.asNode(nodeId) AS node, communityId
RETURN node.id AS conceptId, communityId
"""

_DROP_QUERY = "CALL gds.graph.drop($graphName, false) YIELD graphName RETURN graphName"


class GdsClusteringEngine(BaseClusteringEngine):
    """Louvain clustering through the Neo4j GDS plugin."""

    def __init__(self, graph_store: BaseGraphStore) -> None:
        self._store = graph_store

    async def is_available(self) -> bool:
        try:
            row = await self._store.read_one(_VERSION_QUERY)
        except Exception as e:
            logger.warning("GDS availability probe failed: %s", e)
            return False
        if row is None or not row.get("version"):
            return False
        logger.debug("GDS version %s available", row["version"])
        return True

    async def project(self, graph_name: str, scope_id: str) -> ProjectionStats:
        row = await self._store.read_one(
            _PROJECT_QUERY, {"graphName": graph_name, "scopeId": scope_id}
        )
        stats = ProjectionStats(
            graph_name=graph_name,
            node_count=(row or {}).get("nodeCount") or 0,
            relationship_count=(row or {}).get("relationshipCount") or 0,
        )
        logger.debug(
            "Graph projected: %d nodes, %d relationships",
            stats.node_count, stats.relationship_count,
        )
        return stats

    async def stream_clusters(self, graph_name: str, resolution: float) -> dict[str, int]:
        rows = await self._store.read(
            _LOUVAIN_QUERY, {"graphName": graph_name, "resolution": resolution}
        )
        return {row["conceptId"]: row["communityId"] for row in rows}

    async def drop(self, graph_name: str) -> None:
        await self._store.write_one(_DROP_QUERY, {"graphName": graph_name})

    @property
    def backend_name(self) -> str:
        return "gds"
