"""
Ingestion — chunking, rate-limited embedding, and vector-store persistence.

This module converts an already-decoded plain-text document into embedded
chunks stored in a vector database. File-format decoding happens upstream.

Public surface
--------------
- :func:`segment` — deterministic overlapping chunker.
- :class:`Embedder` — one embedding call per chunk with 429 backoff.
- :class:`BatchScheduler` — paced, batched fan-out over the embedder.
- :class:`Upserter` — batched vector-store writes.
- :class:`IngestionPipeline` — all of the above, end to end.
"""

from rag_ingestion.ingestion.chunker import segment
from rag_ingestion.ingestion.embedder import Embedder, is_rate_limit_error
from rag_ingestion.ingestion.exceptions import (
    EmbeddingFailedError,
    EmptyDocumentError,
    IngestionError,
    NoChunksError,
    VectorStoreError,
)
from rag_ingestion.ingestion.models import (
    Chunk,
    Document,
    DropReason,
    EmbedDropped,
    EmbeddingVector,
    EmbedOk,
    IngestionResult,
    VectorMetadata,
)
from rag_ingestion.ingestion.pipeline import IngestionPipeline
from rag_ingestion.ingestion.scheduler import BatchScheduler
from rag_ingestion.ingestion.upserter import Upserter

__all__ = [
    "BatchScheduler",
    "Chunk",
    "Document",
    "DropReason",
    "EmbedDropped",
    "EmbedOk",
    "Embedder",
    "EmbeddingFailedError",
    "EmbeddingVector",
    "EmptyDocumentError",
    "IngestionError",
    "IngestionPipeline",
    "IngestionResult",
    "NoChunksError",
    "Upserter",
    "VectorMetadata",
    "VectorStoreError",
    "is_rate_limit_error",
    "segment",
]
