"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import asyncio

import pytest

from rag_ingestion.config import IngestionConfig
from rag_ingestion.ingestion.models import EmbeddingVector
from rag_ingestion.vectorstore.base import VectorStoreBase


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class FakeEmbeddings:
    """Returns ``[len(text), 1.0, 0.5]`` unless *text* is listed in ``fail``.

    Failing texts raise ``RuntimeError`` (a non-rate-limit error). Every
    call is recorded in order.
    """

    def __init__(self, fail: set[str] | None = None) -> None:
        self.fail = fail or set()
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def aembed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if text in self.fail:
                raise RuntimeError("invalid argument")
            return [float(len(text)), 1.0, 0.5]
        finally:
            self.in_flight -= 1


class FakeVectorStore(VectorStoreBase):
    """In-memory store recording every upserted batch."""

    def __init__(self, fail_on_batch: int | None = None) -> None:
        super().__init__("test-collection")
        self.batches: list[list[EmbeddingVector]] = []
        self._fail_on_batch = fail_on_batch

    def upsert(self, vectors: list[EmbeddingVector]) -> None:
        if self._fail_on_batch is not None and len(self.batches) + 1 == self._fail_on_batch:
            raise ConnectionError("store unavailable")
        self.batches.append(list(vectors))

    def health_check(self) -> bool:
        return True

    @property
    def vectors(self) -> list[EmbeddingVector]:
        return [v for batch in self.batches for v in batch]


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def make_embeddings() -> type[FakeEmbeddings]:
    return FakeEmbeddings


@pytest.fixture()
def make_store() -> type[FakeVectorStore]:
    return FakeVectorStore


@pytest.fixture()
def fast_config() -> IngestionConfig:
    """Default batch sizes with every delay set to zero."""
    return IngestionConfig(
        intra_batch_delay=0,
        delay_between_batches=0,
        base_retry_delay=0,
    )
