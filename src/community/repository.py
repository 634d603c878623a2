# src/community/repository.py — v1
"""Community persistence on Neo4j.

Every query is bound to the active scope (``graphdrift.core.scope``):
communities hang off ``(:Scope {id})`` through ``BELONGS_TO`` and no query
reads or writes another scope's nodes. ``find_stale_communities`` is the
one cross-scope read; it exists for batch summarization, which then
re-enters each community's scope.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from graphdrift.community.models import (
    Community,
    CommunityAffinity,
    LevelCount,
    MemberConcept,
    MemberRelationship,
    StaleCommunityRef,
)
from graphdrift.core.scope import current_scope
from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore, CypherStatement

logger = logging.getLogger(__name__)

_IN_SCOPE = "(community:Community)-[:BELONGS_TO]->(:Scope {id: $scopeId})"


class CommunityRepository:
    """All Community reads and writes for the current scope."""

    def __init__(
        self,
        graph_store: BaseGraphStore,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = graph_store
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    @staticmethod
    def _params(**kwargs: Any) -> dict[str, Any]:
        return {"scopeId": current_scope(), **kwargs}

    # --- Schema ---

    async def ensure_schema(self, dimensions: int) -> None:
        """Create the id constraint and the cosine vector index (idempotent)."""
        await self._store.write_one(
            "CREATE CONSTRAINT community_id IF NOT EXISTS "
            "FOR (community:Community) REQUIRE community.id IS UNIQUE"
        )
        # Index options cannot be parameterised
        await self._store.write_one(
            "CREATE VECTOR INDEX communities IF NOT EXISTS "
            "FOR (community:Community) ON community.embedding "
            "OPTIONS { indexConfig: { "
            f"`vector.dimensions`: {int(dimensions)}, "
            "`vector.similarity_function`: 'cosine' } }"
        )
        logger.info("Community schema ensured (dimensions=%d)", dimensions)

    # --- Lifecycle ---

    async def delete_all_communities(self) -> None:
        await self._store.write_one(
            f"MATCH {_IN_SCOPE} DETACH DELETE community", self._params()
        )

    async def create_community(
        self, name: str, level: int, member_count: int, rating: float = 0.0
    ) -> Community:
        """Create a stale community attached to the current scope."""
        now = datetime.now(timezone.utc)
        community = Community(
            id=self._id_factory(),
            level=level,
            name=name,
            rating=rating,
            member_count=member_count,
            is_stale=True,
            stale_since=now,
            created_at=now,
            updated_at=now,
        )
        await self._store.write_one(
            """
            MERGE (scope:Scope {id: $scopeId})
            CREATE (community:Community {
              id: $id, name: $name, level: $level, memberCount: $memberCount,
              rating: $rating, isStale: true, staleSince: $now,
              createdAt: $now, updatedAt: $now
            })
            CREATE (community)-[:BELONGS_TO]->(scope)
            """,
            self._params(
                id=community.id,
                name=name,
                level=level,
                memberCount=member_count,
                rating=rating,
                now=now,
            ),
        )
        return community

    async def update_community_members(
        self, community_id: str, concept_ids: list[str]
    ) -> None:
        """Replace the member set and refresh ``memberCount`` atomically."""
        params = self._params(communityId=community_id, conceptIds=list(concept_ids))
        statements = [
            CypherStatement(
                f"MATCH {_IN_SCOPE} WHERE community.id = $communityId "
                "MATCH (community)-[r:HAS_MEMBER]->() DELETE r",
                params,
            ),
        ]
        if concept_ids:
            statements.append(
                CypherStatement(
                    f"""
                    MATCH {_IN_SCOPE} WHERE community.id = $communityId
                    MATCH (concept:Concept)-[:BELONGS_TO]->(:Scope {{id: $scopeId}})
                    WHERE concept.id IN $conceptIds
                    MERGE (community)-[:HAS_MEMBER]->(concept)
                    """,
                    params,
                )
            )
        statements.append(
            CypherStatement(
                f"""
                MATCH {_IN_SCOPE} WHERE community.id = $communityId
                OPTIONAL MATCH (community)-[:HAS_MEMBER]->(member:Concept)
                WITH community, count(member) AS n
                SET community.memberCount = n, community.updatedAt = datetime()
                """,
                params,
            )
        )
        await self._store.execute_in_transaction(statements)

    async def set_parent_community(self, child_id: str, parent_id: str) -> None:
        await self._store.write_one(
            """
            MATCH (parent:Community {id: $parentId})-[:BELONGS_TO]->(scope:Scope {id: $scopeId})
            MATCH (child:Community {id: $childId})-[:BELONGS_TO]->(scope)
            MERGE (parent)-[:PARENT_OF]->(child)
            """,
            self._params(childId=child_id, parentId=parent_id),
        )

    async def mark_as_stale(self, community_ids: list[str]) -> None:
        if not community_ids:
            return
        await self._store.write_one(
            f"""
            MATCH {_IN_SCOPE} WHERE community.id IN $communityIds
            SET community.isStale = true,
                community.staleSince = coalesce(community.staleSince, datetime()),
                community.updatedAt = datetime()
            """,
            self._params(communityIds=list(community_ids)),
        )

    async def add_member_to_community(self, community_id: str, concept_id: str) -> None:
        await self._store.write_one(
            f"""
            MATCH {_IN_SCOPE} WHERE community.id = $communityId
            MATCH (concept:Concept {{id: $conceptId}})-[:BELONGS_TO]->(:Scope {{id: $scopeId}})
            MERGE (community)-[:HAS_MEMBER]->(concept)
            WITH community
            MATCH (community)-[:HAS_MEMBER]->(member:Concept)
            WITH community, count(member) AS n
            SET community.memberCount = n, community.updatedAt = datetime()
            """,
            self._params(communityId=community_id, conceptId=concept_id),
        )

    async def update_summary(
        self,
        community_id: str,
        name: str,
        summary: str,
        embedding: list[float],
        rating: float,
    ) -> None:
        """Store a regenerated report and clear the stale flag."""
        await self._store.write_one(
            f"""
            MATCH {_IN_SCOPE} WHERE community.id = $communityId
            SET community.name = $name,
                community.summary = $summary,
                community.embedding = $embedding,
                community.rating = $rating,
                community.isStale = false,
                community.staleSince = null,
                community.lastProcessedAt = datetime(),
                community.updatedAt = datetime()
            """,
            self._params(
                communityId=community_id,
                name=name,
                summary=summary,
                embedding=list(embedding),
                rating=rating,
            ),
        )

    async def delete_community(self, community_id: str) -> None:
        await self._store.write_one(
            f"MATCH {_IN_SCOPE} WHERE community.id = $communityId DETACH DELETE community",
            self._params(communityId=community_id),
        )

    # --- Lookups ---

    async def find_by_id(self, community_id: str) -> Community | None:
        row = await self._store.read_one(
            f"MATCH {_IN_SCOPE} WHERE community.id = $communityId "
            "RETURN community {.*} AS community",
            self._params(communityId=community_id),
        )
        return Community.model_validate(row["community"]) if row else None

    async def count_by_level(self) -> list[LevelCount]:
        rows = await self._store.read(
            f"""
            MATCH {_IN_SCOPE}
            RETURN community.level AS level, count(community) AS count
            ORDER BY level ASC
            """,
            self._params(),
        )
        return [LevelCount(**row) for row in rows]

    async def count_stale(self) -> int:
        row = await self._store.read_one(
            f"MATCH {_IN_SCOPE} WHERE community.isStale = true "
            "RETURN count(community) AS count",
            self._params(),
        )
        return int(row["count"]) if row else 0

    async def find_by_level(self, level: int) -> list[Community]:
        return await self._read_communities(
            f"""
            MATCH {_IN_SCOPE} WHERE community.level = $level
            RETURN community {{.*}} AS community
            ORDER BY community.rating DESC, community.id ASC
            """,
            self._params(level=level),
        )

    async def find_by_vector(
        self, embedding: list[float], top_k: int, level: int | None = None
    ) -> list[Community]:
        """Nearest summarized communities by cosine similarity, best first.

        The index is queried for ``2 * top_k`` candidates before scope, stale
        and level filtering.
        """
        level_clause = " AND community.level = $level" if level is not None else ""
        rows = await self._store.read(
            f"""
            CALL db.index.vector.queryNodes('communities', $topK * 2, $embedding)
            YIELD node AS community, score
            MATCH {_IN_SCOPE}
            WHERE community.embedding IS NOT NULL AND community.isStale = false{level_clause}
            RETURN community {{.*, score: score}} AS community
            ORDER BY score DESC
            LIMIT $topK
            """,
            self._params(embedding=list(embedding), topK=top_k, level=level),
        )
        return [Community.model_validate(row["community"]) for row in rows]

    async def find_communities_by_key_concept(self, concept_id: str) -> list[Community]:
        """Every community (any level) that has the concept as a member."""
        return await self._read_communities(
            f"""
            MATCH (community:Community)-[:HAS_MEMBER]->(:Concept {{id: $conceptId}})
            MATCH {_IN_SCOPE}
            RETURN community {{.*}} AS community
            ORDER BY community.level ASC, community.id ASC
            """,
            self._params(conceptId=concept_id),
        )

    async def find_orphan_key_concepts_for_content(
        self, content_id: str, content_type: str
    ) -> list[str]:
        """Concepts of a content node that belong to no community yet."""
        return await self._store.read_many(
            """
            MATCH (content {id: $contentId})-[:HAS_CONCEPT]->(concept:Concept)
            WHERE $contentType IN labels(content)
            MATCH (concept)-[:BELONGS_TO]->(:Scope {id: $scopeId})
            WHERE NOT EXISTS { MATCH (:Community)-[:HAS_MEMBER]->(concept) }
            RETURN DISTINCT concept.id AS id
            ORDER BY id ASC
            """,
            self._params(contentId=content_id, contentType=content_type),
        )

    async def find_communities_by_related_key_concepts(
        self, concept_id: str
    ) -> list[CommunityAffinity]:
        """Communities holding neighbours of the concept, with link statistics."""
        rows = await self._store.read(
            f"""
            MATCH (orphan:Concept {{id: $conceptId}})<-[:RELATES_TO]-(rel:ConceptRelationship)
                  -[:RELATES_TO]->(neighbour:Concept)
            WHERE neighbour <> orphan
            MATCH (community:Community)-[:HAS_MEMBER]->(neighbour)
            MATCH {_IN_SCOPE}
            WITH community, sum(coalesce(rel.weight, 0.0)) AS totalWeight,
                 count(DISTINCT rel) AS relationshipCount
            RETURN community.id AS community_id,
                   community.level AS level,
                   totalWeight AS total_weight,
                   coalesce(community.memberCount, 0) AS member_count,
                   relationshipCount AS relationship_count
            ORDER BY total_weight DESC, community_id ASC
            """,
            self._params(conceptId=concept_id),
        )
        return [CommunityAffinity(**row) for row in rows]

    async def find_member_key_concepts(self, community_id: str) -> list[MemberConcept]:
        rows = await self._store.read(
            f"""
            MATCH {_IN_SCOPE} WHERE community.id = $communityId
            MATCH (community)-[:HAS_MEMBER]->(concept:Concept)
            RETURN concept.id AS id, concept.value AS value,
                   concept.description AS description
            ORDER BY value ASC
            """,
            self._params(communityId=community_id),
        )
        return [MemberConcept(**row) for row in rows]

    async def find_member_relationships(
        self, community_id: str
    ) -> list[MemberRelationship]:
        """Relationships whose two endpoints are both members, one row per pair."""
        rows = await self._store.read(
            f"""
            MATCH {_IN_SCOPE} WHERE community.id = $communityId
            MATCH (community)-[:HAS_MEMBER]->(c1:Concept)
            MATCH (community)-[:HAS_MEMBER]->(c2:Concept)
            MATCH (c1)<-[:RELATES_TO]-(rel:ConceptRelationship)-[:RELATES_TO]->(c2)
            WHERE c1.value < c2.value
            RETURN c1.value AS a, c2.value AS b, coalesce(rel.weight, 0.0) AS weight
            ORDER BY a ASC, b ASC
            """,
            self._params(communityId=community_id),
        )
        return [MemberRelationship(**row) for row in rows]

    async def find_stale_communities(self, limit: int) -> list[StaleCommunityRef]:
        """Oldest stale communities across all scopes."""
        rows = await self._store.read(
            """
            MATCH (community:Community {isStale: true})-[:BELONGS_TO]->(scope:Scope)
            RETURN community.id AS community_id, scope.id AS scope_id
            ORDER BY community.staleSince ASC, community.id ASC
            LIMIT toInteger($limit)
            """,
            {"limit": int(limit)},
        )
        return [StaleCommunityRef(**row) for row in rows]

    # --- Hierarchy navigation ---

    async def get_hierarchy(self, community_id: str) -> list[Community]:
        """Ancestor chain of a community, coarsest first, ending with itself."""
        return await self._read_communities(
            f"""
            MATCH (child:Community {{id: $communityId}})-[:BELONGS_TO]->(:Scope {{id: $scopeId}})
            MATCH (community:Community)-[:PARENT_OF*0..]->(child)
            RETURN DISTINCT community {{.*}} AS community
            ORDER BY community.level DESC
            """,
            self._params(communityId=community_id),
        )

    async def get_children(self, community_id: str) -> list[Community]:
        return await self._read_communities(
            f"""
            MATCH (parent:Community {{id: $communityId}})-[:BELONGS_TO]->(:Scope {{id: $scopeId}})
            MATCH (parent)-[:PARENT_OF]->(community:Community)
            RETURN community {{.*}} AS community
            ORDER BY community.rating DESC, community.id ASC
            """,
            self._params(communityId=community_id),
        )

    async def _read_communities(self, query: str, params: dict[str, Any]) -> list[Community]:
        rows = await self._store.read(query, params)
        return [Community.model_validate(row["community"]) for row in rows]
