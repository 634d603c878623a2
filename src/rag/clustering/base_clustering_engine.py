# src/rag/clustering/base_clustering_engine.py — v1
"""Abstract clustering engine interface.

An engine projects a scope's concept graph under a caller-chosen name,
clusters the projection at a given resolution and drops it again. Cluster
ids are only meaningful within one ``stream_clusters`` call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel


class ProjectionStats(BaseModel):
    """Size of a projected concept graph."""

    graph_name: str
    node_count: int = 0
    relationship_count: int = 0


class BaseClusteringEngine(ABC):
    """Unified interface for community clustering backends."""

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the backend can run (e.g. GDS plugin installed)."""

    @abstractmethod
    async def project(self, graph_name: str, scope_id: str) -> ProjectionStats:
        """Project the scope's weighted concept graph under ``graph_name``."""

    @abstractmethod
    async def stream_clusters(self, graph_name: str, resolution: float) -> dict[str, int]:
        """Cluster the projection; returns {concept_id: cluster_id}."""

    @abstractmethod
    async def drop(self, graph_name: str) -> None:
        """Release the projection (no error if it does not exist)."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier (gds, networkx)."""
