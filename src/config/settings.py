# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: graph
database, clustering backend, LLM and embedding providers, community
detection and DRIFT search limits, logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDER ===
    llm_provider: Literal["anthropic", "openai", "ollama"] = "anthropic"
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4096

    # Provider API keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # Per-phase sampling temperature
    hyde_temperature: float = 0.5
    primer_temperature: float = 0.3
    followup_temperature: float = 0.3
    synthesis_temperature: float = 0.3
    summarizer_temperature: float = 0.3

    # === EMBEDDINGS ===
    embedding_provider: Literal["openai", "ollama"] = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_ollama_model: str = "nomic-embed-text"

    # === Graph database ===
    graph_db_type: Literal["none", "neo4j"] = "neo4j"
    graph_db_uri: str = "bolt://localhost:7687"
    graph_db_database: str = "neo4j"
    graph_db_user: str = ""
    graph_db_password: str = ""

    # === Community detection ===
    clustering_backend: Literal["gds", "networkx"] = "gds"
    community_resolutions: str = "1.0,0.5,0.25"
    community_min_size: int = 3
    community_parent_overlap_ratio: float = 0.5
    community_detail_limit: int = 3
    summarizer_batch_size: int = 50

    # === DRIFT search ===
    drift_top_k: int = 5
    drift_max_depth: int = 2
    drift_per_step_cap: int = 3
    drift_max_hops: int = 20
    drift_exemplar_level: int = 1

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("community_resolutions")
    @classmethod
    def validate_resolutions(cls, v: str) -> str:  # noqa: N805
        """Resolutions must parse as floats."""
        for part in v.split(","):
            if not part.strip():
                continue
            try:
                float(part)
            except ValueError as e:
                raise ValueError(
                    f"community_resolutions must be comma-separated floats, got {part!r}"
                ) from e
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate ranges and cross-field consistency rules."""
        errors: list[str] = []

        resolutions = self.community_resolutions_list
        if not resolutions:
            errors.append("COMMUNITY_RESOLUTIONS must list at least one value")
        elif any(r <= 0 for r in resolutions):
            errors.append("COMMUNITY_RESOLUTIONS must be positive")
        elif any(a <= b for a, b in zip(resolutions, resolutions[1:])):
            errors.append(
                "COMMUNITY_RESOLUTIONS must be strictly decreasing (finest first)"
            )

        if not 0.0 <= self.community_parent_overlap_ratio < 1.0:
            errors.append("COMMUNITY_PARENT_OVERLAP_RATIO must be in [0, 1)")
        if self.community_min_size < 1:
            errors.append("COMMUNITY_MIN_SIZE must be >= 1")

        if self.drift_top_k < 1:
            errors.append("DRIFT_TOP_K must be >= 1")
        if self.drift_max_depth < 0:
            errors.append("DRIFT_MAX_DEPTH must be >= 0")
        if self.drift_per_step_cap < 1:
            errors.append("DRIFT_PER_STEP_CAP must be >= 1")
        if self.drift_max_hops < 1:
            errors.append("DRIFT_MAX_HOPS must be >= 1")

        if self.clustering_backend == "gds" and self.graph_db_type == "none":
            errors.append("CLUSTERING_BACKEND=gds requires GRAPH_DB_TYPE=neo4j")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def community_resolutions_list(self) -> list[float]:
        """Parse comma-separated resolutions, finest first."""
        return [
            float(r.strip()) for r in self.community_resolutions.split(",") if r.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
