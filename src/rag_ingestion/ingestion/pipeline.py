"""End-to-end ingestion: segment → embed in paced batches → upsert.

Usage::

    from rag_ingestion.ingestion.pipeline import IngestionPipeline
    from rag_ingestion.vectorstore import ChromaVectorStore

    pipeline = IngestionPipeline(store=ChromaVectorStore())
    result = asyncio.run(pipeline.ingest_text(text, source="notes.md"))
    print(result.message)
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from rag_ingestion.config import IngestionConfig
from rag_ingestion.ingestion.chunker import segment
from rag_ingestion.ingestion.embedder import Embedder, Sleep, get_embedding_function
from rag_ingestion.ingestion.exceptions import (
    EmbeddingFailedError,
    EmptyDocumentError,
    NoChunksError,
)
from rag_ingestion.ingestion.models import Document, IngestionResult
from rag_ingestion.ingestion.scheduler import BatchScheduler, ProgressCallback
from rag_ingestion.ingestion.upserter import Upserter

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from rag_ingestion.vectorstore.base import VectorStoreBase

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Turn one plain-text document into vectors in *store*.

    Parameters
    ----------
    store:
        Destination vector store.
    embeddings:
        Embedding client. When *None*, :func:`get_embedding_function`
        builds one from the global settings.
    config:
        Run configuration; defaults to :meth:`IngestionConfig.from_settings`.
    sleep:
        Awaitable delay shared by the embedder and scheduler.
    on_progress:
        Forwarded to :class:`BatchScheduler`.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embeddings: Embeddings | None = None,
        config: IngestionConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.config = config or IngestionConfig.from_settings()
        self._embeddings = embeddings
        self._store = store
        self._sleep = sleep
        self._on_progress = on_progress

    def _get_embeddings(self) -> Embeddings:
        if self._embeddings is None:
            self._embeddings = get_embedding_function()
        return self._embeddings

    async def ingest_text(self, text: str, source: str) -> IngestionResult:
        """Shorthand for :meth:`ingest` on a :class:`Document`."""
        return await self.ingest(Document(name=source, raw_text=text))

    async def ingest(self, document: Document) -> IngestionResult:
        """Run the whole pipeline for *document*.

        Raises
        ------
        EmptyDocumentError
            The text is blank.
        NoChunksError
            Nothing survived segmentation (document too short).
        EmbeddingFailedError
            Every chunk was dropped by the embedder.
        VectorStoreError
            A store write failed; earlier batches remain stored.
        """
        cfg = self.config
        if not document.raw_text.strip():
            raise EmptyDocumentError(
                f"The file {document.name!r} appears to be empty or contains no readable text."
            )

        chunks = segment(
            document.raw_text,
            max_chars=cfg.max_chunk_chars,
            overlap=cfg.chunk_overlap,
            min_chars=cfg.min_chunk_chars,
        )
        if not chunks:
            raise NoChunksError(f"No content could be extracted from {document.name!r}")

        if len(chunks) > cfg.large_document_warning:
            logger.warning(
                "Large document with %d chunks. This will take several minutes "
                "to process due to API rate limits.",
                len(chunks),
            )

        logger.info(
            "Starting to process %d chunks from %s in batches of %d",
            len(chunks),
            document.name,
            cfg.batch_size,
        )
        embedder = Embedder(self._get_embeddings(), cfg, sleep=self._sleep)
        scheduler = BatchScheduler(embedder, cfg, sleep=self._sleep, on_progress=self._on_progress)
        run = await scheduler.run(chunks, document.name)
        vectors = run.vectors

        if not vectors:
            raise EmbeddingFailedError(
                f"Failed to process any of the {len(chunks)} chunks from {document.name!r}. "
                "This may be due to API rate limits."
            )

        upserter = Upserter(self._store, cfg.upsert_batch_size)
        upsert_batches = await asyncio.to_thread(upserter.upsert, vectors)

        result = IngestionResult.build(
            source=document.name,
            chunks_created=len(vectors),
            total_chunks=len(chunks),
            dropped=run.drops,
            batches=run.batches,
            upsert_batches=upsert_batches,
        )
        logger.info(result.message)
        return result
