"""Embedding calls with bounded exponential backoff on rate limits."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from rag_ingestion.config import IngestionConfig, settings
from rag_ingestion.ingestion.models import DropReason, EmbedDropped, EmbedOk, EmbedOutcome

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

_RATE_LIMIT_MARKERS = ("429", "too many requests", "resource_exhausted", "rate limit")


def get_embedding_function() -> Embeddings:
    """Return the configured embedding client.

    ``endpoint`` talks to the hosted HuggingFace inference API; ``local``
    loads the sentence-transformer in-process.
    """
    if settings.embedding_provider == "local":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=settings.embedding_model)

    if settings.embedding_provider != "endpoint":
        raise ValueError(
            f"Unsupported embedding_provider={settings.embedding_provider!r}. "
            "Choose from: endpoint, local."
        )

    from langchain_huggingface import HuggingFaceEndpointEmbeddings

    logger.info("Using HuggingFace inference endpoint for %s", settings.embedding_model)
    return HuggingFaceEndpointEmbeddings(
        model=settings.embedding_model,
        huggingfacehub_api_token=settings.huggingfacehub_api_token or None,
    )


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return ``True`` when *exc* looks like an HTTP 429 from the service."""
    for candidate in (exc, getattr(exc, "response", None)):
        if candidate is None:
            continue
        status = getattr(candidate, "status_code", None) or getattr(candidate, "status", None)
        if status == 429:
            return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


class Embedder:
    """Wraps one embedding request per chunk.

    Parameters
    ----------
    embeddings:
        LangChain embeddings client; only ``aembed_query`` is used.
    config:
        Supplies ``max_retries`` and ``base_retry_delay``.
    sleep:
        Awaitable delay, replaced in tests to observe the backoff schedule.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        config: IngestionConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._embeddings = embeddings
        self._config = config or IngestionConfig()
        self._sleep = sleep

    async def embed_with_retry(self, text: str) -> EmbedOutcome:
        """Embed *text*, retrying only rate-limit errors.

        Never raises for service failures; a failed chunk comes back as
        :class:`EmbedDropped`.
        """
        max_retries = self._config.max_retries
        attempt = 0
        while True:
            try:
                values = await self._embeddings.aembed_query(text)
            except Exception as exc:
                if not is_rate_limit_error(exc):
                    logger.error("Embedding generation error: %s", exc)
                    return EmbedDropped(reason=DropReason.ERROR, detail=str(exc), attempts=attempt + 1)
                if attempt >= max_retries:
                    logger.error(
                        "Max retries exceeded for embedding generation. Rate limit error: %s", exc
                    )
                    return EmbedDropped(
                        reason=DropReason.RATE_LIMITED, detail=str(exc), attempts=attempt + 1
                    )
                wait = self._config.base_retry_delay * 2**attempt
                logger.warning(
                    "Rate limited. Retrying in %.1fs (attempt %d/%d)", wait, attempt + 1, max_retries
                )
                await self._sleep(wait)
                attempt += 1
                continue

            return self._to_outcome(values, attempt + 1)

    @staticmethod
    def _to_outcome(values: object, attempts: int) -> EmbedOutcome:
        """Validate a raw service response; malformed vectors are dropped, not raised."""
        try:
            if values is None or len(values) == 0:  # type: ignore[arg-type]
                logger.warning("Embedding service returned an empty vector")
                return EmbedDropped(reason=DropReason.EMPTY, attempts=attempts)
            return EmbedOk(values=list(values))  # type: ignore[call-overload]
        except (TypeError, ValueError) as exc:
            # pydantic's ValidationError is a ValueError
            logger.error("Malformed embedding response: %s", exc)
            return EmbedDropped(reason=DropReason.ERROR, detail=str(exc), attempts=attempts)

    async def embed(self, text: str) -> list[float] | None:
        """Return the vector for *text*, or ``None`` when the chunk is dropped."""
        outcome = await self.embed_with_retry(text)
        if isinstance(outcome, EmbedOk):
            return outcome.values
        return None
