"""Pipeline-level failures surfaced to the caller.

Per-chunk embedding failures never raise; they are absorbed by the
embedder and only show up in :class:`~rag_ingestion.ingestion.models.IngestionResult`.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for every hard ingestion failure."""


class EmptyDocumentError(IngestionError):
    """The document contained no readable text."""


class NoChunksError(IngestionError):
    """Segmentation produced zero chunks (document empty or too short)."""


class EmbeddingFailedError(IngestionError):
    """Every chunk was dropped by the embedder."""


class VectorStoreError(IngestionError):
    """A vector-store write failed; later batches were not attempted.

    Attributes
    ----------
    batches_written:
        Batches that reached the store before the failure. They are not
        rolled back.
    """

    def __init__(self, message: str, *, batches_written: int = 0) -> None:
        super().__init__(message)
        self.batches_written = batches_written
