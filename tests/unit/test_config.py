"""Unit tests for settings and the ingestion config struct."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rag_ingestion.config import IngestionConfig, Settings


def test_defaults_match_rate_limit_policy() -> None:
    cfg = IngestionConfig()
    assert cfg.batch_size == 10
    assert cfg.delay_between_batches == 5.0
    assert cfg.intra_batch_delay == 0.2
    assert cfg.max_retries == 3
    assert cfg.base_retry_delay == 1.0
    assert cfg.upsert_batch_size == 100


def test_overlap_must_be_smaller_than_window() -> None:
    with pytest.raises(ValidationError, match="chunk_overlap"):
        IngestionConfig(max_chunk_chars=100, chunk_overlap=100)


def test_batch_size_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        IngestionConfig(batch_size=0)


def test_from_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BATCH_SIZE", "4")
    monkeypatch.setenv("DELAY_BETWEEN_BATCHES", "0.5")
    monkeypatch.setenv("UPSERT_BATCH_SIZE", "25")

    cfg = IngestionConfig.from_settings(Settings())

    assert cfg.batch_size == 4
    assert cfg.delay_between_batches == 0.5
    assert cfg.upsert_batch_size == 25


def test_config_is_frozen() -> None:
    cfg = IngestionConfig()
    with pytest.raises(ValidationError):
        cfg.batch_size = 2
