# src/rag/graph_store/neo4j_store.py — v2
"""Neo4j graph store adapter.

Uses the neo4j async driver. Writes go through managed transactions so
the driver retries transient cluster errors on its own.
"""

from __future__ import annotations

import logging
from typing import Any

from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore, CypherStatement

logger = logging.getLogger(__name__)


class Neo4jStore(BaseGraphStore):
    """Graph store backed by Neo4j."""

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        user: str = "",
        password: str = "",
        database: str = "neo4j",
    ) -> None:
        try:
            from neo4j import AsyncGraphDatabase
        except ImportError as e:
            raise ImportError(
                "neo4j package required: pip install neo4j"
            ) from e

        auth = (user, password) if user else None
        self._driver = AsyncGraphDatabase.driver(uri, auth=auth)
        self._database = database

    async def read(self, query: str, params: dict[str, Any] | None = None) -> list[dict]:
        async with self._driver.session(database=self._database) as session:
            return await session.execute_read(_collect, query, params or {})

    async def write_one(self, query: str, params: dict[str, Any] | None = None) -> None:
        async with self._driver.session(database=self._database) as session:
            await session.execute_write(_consume, query, params or {})

    async def execute_in_transaction(self, statements: list[CypherStatement]) -> None:
        if not statements:
            return

        async def _work(tx) -> None:
            for stmt in statements:
                result = await tx.run(stmt.query, stmt.params)
                await result.consume()

        async with self._driver.session(database=self._database) as session:
            await session.execute_write(_work)
        logger.debug("Committed transaction with %d statements", len(statements))

    @property
    def provider_name(self) -> str:
        return "neo4j"

    async def close(self) -> None:
        """Close the driver connection."""
        await self._driver.close()


async def _collect(tx, query: str, params: dict[str, Any]) -> list[dict]:
    result = await tx.run(query, params)
    return [record.data() async for record in result]


async def _consume(tx, query: str, params: dict[str, Any]) -> None:
    result = await tx.run(query, params)
    await result.consume()
