"""Batched, order-preserving writes to the vector store."""

from __future__ import annotations

import logging
import math

from rag_ingestion.ingestion.exceptions import VectorStoreError
from rag_ingestion.ingestion.models import EmbeddingVector
from rag_ingestion.vectorstore.base import VectorStoreBase

logger = logging.getLogger(__name__)


class Upserter:
    """Submit vectors to *store* in sequential batches of ``upsert_batch_size``.

    The first failing batch aborts the run; batches written before it stay
    in the store.
    """

    def __init__(self, store: VectorStoreBase, upsert_batch_size: int = 100) -> None:
        if upsert_batch_size <= 0:
            raise ValueError(f"upsert_batch_size must be positive, got {upsert_batch_size}")
        self._store = store
        self.upsert_batch_size = upsert_batch_size

    def upsert(self, vectors: list[EmbeddingVector]) -> int:
        """Write *vectors* and return the number of batches submitted."""
        total_batches = math.ceil(len(vectors) / self.upsert_batch_size)
        batches = 0
        for start in range(0, len(vectors), self.upsert_batch_size):
            batch = vectors[start : start + self.upsert_batch_size]
            try:
                self._store.upsert(batch)
            except Exception as exc:
                logger.error(
                    "Vector store upsert failed on batch %d/%d: %s", batches + 1, total_batches, exc
                )
                raise VectorStoreError(
                    f"Failed to store batch {batches + 1}/{total_batches} "
                    f"in collection '{self._store.collection_name}'",
                    batches_written=batches,
                ) from exc
            batches += 1
            logger.info("Upserted batch %d/%d (%d vectors)", batches, total_batches, len(batch))
        return batches
