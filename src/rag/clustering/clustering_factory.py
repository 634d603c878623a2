# src/rag/clustering/clustering_factory.py — v1
"""Factory: instantiate clustering engine from configuration."""

from __future__ import annotations

import logging

from graphdrift.config.settings import Settings
from graphdrift.rag.clustering.base_clustering_engine import BaseClusteringEngine
from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore

logger = logging.getLogger(__name__)


class UnsupportedClusteringBackendError(ValueError):
    """Raised when a clustering backend is not supported."""


def create_clustering_engine(
    settings: Settings, graph_store: BaseGraphStore
) -> BaseClusteringEngine:
    """Instantiate the configured clustering engine (CLUSTERING_BACKEND).

    Raises:
        UnsupportedClusteringBackendError: If the backend is not supported.
    """
    backend = settings.clustering_backend

    if backend == "gds":
        from graphdrift.rag.clustering.gds_engine import GdsClusteringEngine
        engine: BaseClusteringEngine = GdsClusteringEngine(graph_store)
    elif backend == "networkx":
        from graphdrift.rag.clustering.networkx_engine import NetworkXClusteringEngine
        engine = NetworkXClusteringEngine(graph_store)
    else:
        raise UnsupportedClusteringBackendError(
            f"Unsupported clustering backend: {backend!r}. Available: gds, networkx"
        )

    logger.debug("Creating clustering engine: backend=%s", backend)
    return engine
