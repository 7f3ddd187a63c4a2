"""
Operational settings for the content intelligence pipeline.

Values are read from the environment (prefix ``CONTENT_INTEL_``) or a local
``.env`` file. Algorithm constants live next to the code that uses them.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Tunables for ingestion, retrieval and provider calls."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_INTEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Providers
    embedding_timeout_seconds: float = Field(default=10.0, gt=0)
    completion_timeout_seconds: float = Field(default=30.0, gt=0)
    provider_max_attempts: int = Field(default=3, ge=1)
    provider_backoff_seconds: float = Field(default=0.5, ge=0)

    # Ingestion
    max_content_chars: int = Field(default=200_000, gt=0)
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    max_chunks: int = Field(default=10, ge=1)

    # Retrieval
    similarity_threshold: float = Field(default=0.3, ge=-1.0, le=1.0)
    small_corpus_size: int = Field(
        default=5, ge=0, description="Corpora with fewer items use the small-corpus threshold"
    )
    small_corpus_threshold: float = Field(default=0.05, ge=-1.0, le=1.0)
    search_candidates: int = Field(
        default=50, ge=1, description="Chunks fetched from the index before ranking"
    )
    default_limit: int = Field(default=5, ge=1)
    context_budget_chars: int = Field(default=4000, gt=0)

    # Scoring
    decay_half_life_hours: float = Field(default=72.0, gt=0)
