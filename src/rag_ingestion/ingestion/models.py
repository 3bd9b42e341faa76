"""Domain models flowing through the ingestion pipeline.

    Document → Chunk[] → (EmbedOk | EmbedDropped)[] → EmbeddingVector[] → IngestionResult
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Already-decoded plain-text document handed in by an upstream reader."""

    name: str
    raw_text: str


class Chunk(BaseModel):
    """One segment of a document.

    ``index`` is the 0-based emission order, not a character offset.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    text: str
    total_chunks: int


class VectorMetadata(BaseModel):
    """Metadata stored next to every vector."""

    text: str
    source: str
    chunk_index: int
    total_chunks: int
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    batch_number: int


class EmbeddingVector(BaseModel):
    """A successfully embedded chunk ready for the vector store.

    ``id`` is a random UUID, so re-ingesting the same text yields new ids.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    values: list[float]
    metadata: VectorMetadata


# ── embedding outcome ────────────────────────────────────────────────


class DropReason(str, Enum):
    """Why a chunk produced no vector."""

    RATE_LIMITED = "rate_limited"
    ERROR = "error"
    EMPTY = "empty"


class EmbedOk(BaseModel):
    """A vector returned by the embedding service, passed through unchanged."""

    kind: Literal["ok"] = "ok"
    values: list[float]


class EmbedDropped(BaseModel):
    """A chunk that produced no vector.

    Attributes
    ----------
    reason:
        Why the chunk was dropped.
    detail:
        Error text from the service, when there was one.
    attempts:
        Requests issued for the chunk, retries included.
    """

    kind: Literal["dropped"] = "dropped"
    reason: DropReason
    detail: str = ""
    attempts: int = 1


EmbedOutcome = Union[EmbedOk, EmbedDropped]


# ── run summary ──────────────────────────────────────────────────────


class IngestionResult(BaseModel):
    """Statistics for one completed ingestion run.

    Attributes
    ----------
    source:
        Label of the ingested document (original filename).
    chunks_created:
        Vectors written to the store.
    total_chunks:
        Chunks produced by the segmenter.
    success_rate_percent:
        ``chunks_created / total_chunks`` as a percentage with one decimal.
    dropped:
        Count of dropped chunks per :class:`DropReason` value.
    batches / upsert_batches:
        Embedding batches run and vector-store writes issued.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    chunks_created: int
    total_chunks: int
    success_rate_percent: str
    dropped: dict[str, int] = Field(default_factory=dict)
    batches: int = 0
    upsert_batches: int = 0

    @classmethod
    def build(
        cls,
        *,
        source: str,
        chunks_created: int,
        total_chunks: int,
        dropped: Counter | None = None,
        batches: int = 0,
        upsert_batches: int = 0,
    ) -> IngestionResult:
        rate = chunks_created / total_chunks * 100 if total_chunks else 0.0
        return cls(
            source=source,
            chunks_created=chunks_created,
            total_chunks=total_chunks,
            success_rate_percent=f"{rate:.1f}",
            dropped={DropReason(k).value: v for k, v in (dropped or {}).items()},
            batches=batches,
            upsert_batches=upsert_batches,
        )

    @property
    def message(self) -> str:
        """Human-readable status line for the caller."""
        return (
            f"Successfully processed {self.chunks_created}/{self.total_chunks} chunks "
            f"from {self.source} ({self.success_rate_percent}% success rate)"
        )
