"""Unit tests for batched vector-store writes."""

from __future__ import annotations

import pytest

from rag_ingestion.ingestion.exceptions import VectorStoreError
from rag_ingestion.ingestion.models import EmbeddingVector, VectorMetadata
from rag_ingestion.ingestion.upserter import Upserter


def _vectors(n: int) -> list[EmbeddingVector]:
    return [
        EmbeddingVector(
            values=[float(i)],
            metadata=VectorMetadata(
                text=f"chunk {i}", source="doc.txt", chunk_index=i, total_chunks=n, batch_number=1
            ),
        )
        for i in range(n)
    ]


def test_upsert_splits_into_batches(fake_store) -> None:
    vectors = _vectors(250)

    batches = Upserter(fake_store, upsert_batch_size=100).upsert(vectors)

    assert batches == 3
    assert [len(b) for b in fake_store.batches] == [100, 100, 50]
    assert fake_store.vectors == vectors


def test_upsert_single_batch(fake_store) -> None:
    assert Upserter(fake_store).upsert(_vectors(25)) == 1
    assert len(fake_store.batches) == 1


def test_upsert_nothing(fake_store) -> None:
    assert Upserter(fake_store).upsert([]) == 0
    assert fake_store.batches == []


def test_upsert_failure_aborts_remaining_batches(make_store) -> None:
    store = make_store(fail_on_batch=2)

    with pytest.raises(VectorStoreError, match="batch 2/3") as excinfo:
        Upserter(store, upsert_batch_size=10).upsert(_vectors(30))

    assert excinfo.value.batches_written == 1
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    # the first batch stays written, the third is never attempted
    assert len(store.batches) == 1


def test_upsert_rejects_bad_batch_size(fake_store) -> None:
    with pytest.raises(ValueError, match="upsert_batch_size"):
        Upserter(fake_store, upsert_batch_size=0)
