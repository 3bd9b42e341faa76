"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_provider: str = Field(
        default="endpoint",
        description=(
            "'endpoint' calls the hosted HuggingFace inference API (rate limited, "
            "answers HTTP 429 when throttled); 'local' runs a sentence-transformer "
            "in-process."
        ),
    )
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    huggingfacehub_api_token: str = Field(default="", description="Token for the HF inference API")

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "rag_ingestion"

    # Segmentation
    max_chunk_chars: int = 1500
    chunk_overlap: int = 200
    min_chunk_chars: int = 50

    # Rate limiting against the embedding service
    batch_size: int = 10
    intra_batch_delay: float = 0.2
    delay_between_batches: float = 5.0
    max_retries: int = 3
    base_retry_delay: float = 1.0

    # Vector-store writes
    upsert_batch_size: int = 100

    # Upload guards
    large_document_warning: int = 100
    max_document_bytes: int = 10 * 1024 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()


class IngestionConfig(BaseModel):
    """Tuning knobs for one ingestion run.

    Passed explicitly into the embedder, scheduler, upserter and pipeline so
    tests can shrink batch sizes and zero out the delays. Delays are in
    seconds.

    Attributes
    ----------
    max_chunk_chars / chunk_overlap / min_chunk_chars:
        Segmenter window, backward overlap and minimum emitted length.
    batch_size:
        Chunks embedded concurrently per batch.
    intra_batch_delay:
        Pause before the 2nd..Nth request of a batch fires.
    delay_between_batches:
        Pause after each batch except the last.
    max_retries / base_retry_delay:
        Rate-limit backoff schedule, ``base_retry_delay * 2**attempt``.
    upsert_batch_size:
        Vectors per vector-store write.
    large_document_warning:
        Chunk count above which a slow-run warning is logged.
    """

    model_config = ConfigDict(frozen=True)

    max_chunk_chars: int = Field(default=1500, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    min_chunk_chars: int = Field(default=50, ge=0)
    batch_size: int = Field(default=10, gt=0)
    intra_batch_delay: float = Field(default=0.2, ge=0)
    delay_between_batches: float = Field(default=5.0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    base_retry_delay: float = Field(default=1.0, ge=0)
    upsert_batch_size: int = Field(default=100, gt=0)
    large_document_warning: int = Field(default=100, ge=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> IngestionConfig:
        if self.chunk_overlap >= self.max_chunk_chars:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be < "
                f"max_chunk_chars ({self.max_chunk_chars})"
            )
        return self

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> IngestionConfig:
        """Build a config from the environment-driven :class:`Settings`."""
        source = source or settings
        return cls(
            max_chunk_chars=source.max_chunk_chars,
            chunk_overlap=source.chunk_overlap,
            min_chunk_chars=source.min_chunk_chars,
            batch_size=source.batch_size,
            intra_batch_delay=source.intra_batch_delay,
            delay_between_batches=source.delay_between_batches,
            max_retries=source.max_retries,
            base_retry_delay=source.base_retry_delay,
            upsert_batch_size=source.upsert_batch_size,
            large_document_warning=source.large_document_warning,
        )
