# src/api/facade.py — v2
"""Public API facade — wires every service from Settings.

Usage:
    from graphdrift.api.facade import build_services
    services = build_services(load_settings())
    try:
        with scope_context("acme"):
            result = await services.drift.search("Who supplies the parts?")
    finally:
        await services.close()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from graphdrift.batch.scope_driver import ScopeBatchDriver
from graphdrift.batch.scope_enumerator import GraphScopeEnumerator
from graphdrift.community.detector import CommunityDetector
from graphdrift.community.repository import CommunityRepository
from graphdrift.community.staleness import StalenessTracker
from graphdrift.community.summarizer import CommunitySummarizer
from graphdrift.config.settings import Settings
from graphdrift.core.scope import ScopeLockRegistry
from graphdrift.drift.engine import DriftSearchEngine
from graphdrift.drift.models import DriftConfig
from graphdrift.llm.client_factory import create_llm_client_from_settings
from graphdrift.llm.structured import StructuredLLM
from graphdrift.rag.clustering.clustering_factory import create_clustering_engine
from graphdrift.rag.embeddings.embedder_factory import create_embedder
from graphdrift.rag.graph_store.graph_store_factory import create_graph_store

if TYPE_CHECKING:
    from graphdrift.rag.embeddings.base_embedder import BaseEmbedder
    from graphdrift.rag.graph_store.base_graph_store import BaseGraphStore

logger = logging.getLogger(__name__)


@dataclass
class GraphDriftServices:
    """Every long-lived service of one process, sharing one graph store."""

    settings: Settings
    graph_store: BaseGraphStore
    embedder: BaseEmbedder
    repository: CommunityRepository
    detector: CommunityDetector
    staleness: StalenessTracker
    summarizer: CommunitySummarizer
    drift: DriftSearchEngine
    batch: ScopeBatchDriver

    async def ensure_schema(self) -> None:
        await self.repository.ensure_schema(self.settings.embedding_dimensions)

    async def close(self) -> None:
        await self.graph_store.close()


def build_services(
    settings: Settings | None = None,
    graph_store: BaseGraphStore | None = None,
    llm: StructuredLLM | None = None,
    embedder: BaseEmbedder | None = None,
) -> GraphDriftServices:
    """Build the service graph; explicit collaborators override the factories.

    Args:
        settings: Global settings. Loaded from .env if None.
        graph_store: Graph store. Created from GRAPH_DB_* if None.
        llm: Structured LLM. Created from LLM_* if None.
        embedder: Embedding provider. Created from EMBEDDING_* if None.
    """
    settings = settings or Settings()
    graph_store = graph_store or create_graph_store(settings)
    llm = llm or StructuredLLM(
        create_llm_client_from_settings(settings), max_tokens=settings.llm_max_tokens
    )
    embedder = embedder or create_embedder(settings)

    repository = CommunityRepository(graph_store)
    locks = ScopeLockRegistry()
    detector = CommunityDetector(
        repository,
        create_clustering_engine(settings, graph_store),
        resolutions=settings.community_resolutions_list,
        min_community_size=settings.community_min_size,
        overlap_ratio=settings.community_parent_overlap_ratio,
        locks=locks,
    )

    logger.debug(
        "Services built: graph=%s, llm=%s, embedder=%s, clustering=%s",
        graph_store.provider_name, llm.provider_name,
        embedder.provider_name, settings.clustering_backend,
    )
    return GraphDriftServices(
        settings=settings,
        graph_store=graph_store,
        embedder=embedder,
        repository=repository,
        detector=detector,
        staleness=StalenessTracker(repository, detector, locks),
        summarizer=CommunitySummarizer(
            repository, llm, embedder, temperature=settings.summarizer_temperature
        ),
        drift=DriftSearchEngine(
            repository, llm, embedder, config=DriftConfig.from_settings(settings)
        ),
        batch=ScopeBatchDriver(GraphScopeEnumerator(graph_store), detector, repository),
    )
