"""Batch scheduler — paces chunks through the embedder.

Chunks are embedded in sequential batches. Within a batch every chunk gets
its own task, staggered by ``intra_batch_delay``; the batch is joined before
the scheduler waits ``delay_between_batches`` and starts the next one, so
two batches are never in flight at once.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rag_ingestion.config import IngestionConfig
from rag_ingestion.ingestion.embedder import Embedder, Sleep
from rag_ingestion.ingestion.models import (
    Chunk,
    DropReason,
    EmbedDropped,
    EmbeddingVector,
    VectorMetadata,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class BatchRun:
    """Outcome of one scheduler run, owned by that run alone."""

    vectors: list[EmbeddingVector] = field(default_factory=list)
    drops: Counter[DropReason] = field(default_factory=Counter)
    batches: int = 0


class BatchScheduler:
    """Drives chunks through an :class:`Embedder` under the rate-limit policy.

    Parameters
    ----------
    embedder:
        Per-chunk embedding with its own retry handling.
    config:
        Supplies ``batch_size``, ``intra_batch_delay`` and
        ``delay_between_batches``.
    sleep:
        Awaitable delay used for both pacing waits.
    on_progress:
        Called as ``on_progress(processed, total)`` after each batch.
    """

    def __init__(
        self,
        embedder: Embedder,
        config: IngestionConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._embedder = embedder
        self._config = config or IngestionConfig()
        self._sleep = sleep
        self._on_progress = on_progress

    async def run_ingestion(self, chunks: list[Chunk], source_name: str) -> list[EmbeddingVector]:
        """Embed *chunks* and return the vectors that succeeded.

        The result is in completion order. Dropped chunks are left out. An
        empty list means every chunk failed (or there were none).
        """
        return (await self.run(chunks, source_name)).vectors

    async def run(self, chunks: list[Chunk], source_name: str) -> BatchRun:
        """Like :meth:`run_ingestion`, but also return drop and batch tallies.

        Every call builds its own :class:`BatchRun`, so concurrent runs on
        one scheduler never share statistics.
        """
        batch_size = self._config.batch_size
        total = len(chunks)
        total_batches = math.ceil(total / batch_size)
        result = BatchRun()

        for start in range(0, total, batch_size):
            batch = chunks[start : start + batch_size]
            batch_number = start // batch_size + 1
            logger.info(
                "Processing batch %d/%d (%d chunks)", batch_number, total_batches, len(batch)
            )

            async with asyncio.TaskGroup() as tg:
                for position, chunk in enumerate(batch):
                    tg.create_task(
                        self._embed_chunk(
                            chunk, start + position, batch_number, total, source_name, result
                        )
                    )
            result.batches += 1

            processed = start + len(batch)
            logger.info(
                "Progress: %d/%d chunks processed (%d%%)",
                processed,
                total,
                round(processed / total * 100),
            )
            if self._on_progress is not None:
                self._on_progress(processed, total)

            if start + batch_size < total:
                logger.info("Waiting %.1fs before next batch...", self._config.delay_between_batches)
                await self._sleep(self._config.delay_between_batches)

        dropped = sum(result.drops.values())
        if dropped:
            logger.warning("Dropped %d/%d chunks from %s: %s", dropped, total, source_name, dict(result.drops))
        return result

    async def _embed_chunk(
        self,
        chunk: Chunk,
        global_index: int,
        batch_number: int,
        total: int,
        source_name: str,
        result: BatchRun,
    ) -> None:
        # First request of a batch fires immediately, the rest are staggered.
        if global_index % self._config.batch_size:
            await self._sleep(self._config.intra_batch_delay)

        outcome = await self._embedder.embed_with_retry(chunk.text)
        if isinstance(outcome, EmbedDropped):
            result.drops[outcome.reason] += 1
            logger.debug("Chunk %d dropped (%s)", global_index, outcome.reason.value)
            return

        result.vectors.append(
            EmbeddingVector(
                values=outcome.values,
                metadata=VectorMetadata(
                    text=chunk.text,
                    source=source_name,
                    chunk_index=global_index,
                    total_chunks=total,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                    batch_number=batch_number,
                ),
            )
        )
