# src/rag/graph_store/base_graph_store.py — v2
"""Abstract graph store interface.

The store executes parameterised Cypher; callers own the queries. Reads
return plain dicts keyed by the RETURN aliases.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CypherStatement:
    """One query of a multi-statement write transaction."""

    query: str
    params: dict[str, Any] = field(default_factory=dict)


class BaseGraphStore(ABC):
    """Unified interface for graph store backends."""

    @abstractmethod
    async def read(self, query: str, params: dict[str, Any] | None = None) -> list[dict]:
        """Run a read query and return every row."""

    async def read_one(self, query: str, params: dict[str, Any] | None = None) -> dict | None:
        """Run a read query and return the first row, or None."""
        rows = await self.read(query, params)
        return rows[0] if rows else None

    async def read_many(self, query: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Run a read query and return the first column of every row."""
        rows = await self.read(query, params)
        return [next(iter(row.values())) for row in rows if row]

    @abstractmethod
    async def write_one(self, query: str, params: dict[str, Any] | None = None) -> None:
        """Run a single write query in its own transaction."""

    @abstractmethod
    async def execute_in_transaction(self, statements: list[CypherStatement]) -> None:
        """Run several write queries atomically (all or nothing)."""

    @abstractmethod
    async def close(self) -> None:
        """Release driver resources."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (neo4j)."""
