# src/batch/scope_enumerator.py — v1
"""Scope enumeration for batch runs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from graphdrift.core.models import Scope
from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore


class BaseScopeEnumerator(ABC):
    """Lists every scope a batch run should visit."""

    @abstractmethod
    async def fetch_all(self) -> list[Scope]:
        """All known scopes, in a stable order."""


class GraphScopeEnumerator(BaseScopeEnumerator):
    """Reads ``(:Scope)`` nodes from the graph store."""

    def __init__(self, graph_store: BaseGraphStore) -> None:
        self._store = graph_store

    async def fetch_all(self) -> list[Scope]:
        rows = await self._store.read(
            "MATCH (scope:Scope) "
            "RETURN scope.id AS id, coalesce(scope.name, '') AS name "
            "ORDER BY id ASC"
        )
        return [Scope(**row) for row in rows]
