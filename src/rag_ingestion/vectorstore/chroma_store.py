"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import chromadb

from rag_ingestion.config import settings
from rag_ingestion.vectorstore.base import VectorStoreBase

if TYPE_CHECKING:
    from rag_ingestion.ingestion.models import EmbeddingVector

logger = logging.getLogger(__name__)


def _flatten_metadata(vector: EmbeddingVector) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    meta = vector.metadata.model_dump()
    return {k: v for k, v in meta.items() if isinstance(v, (str, int, float, bool))}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        ``cosine`` | ``l2`` | ``ip``, applied when the collection is created.
    client:
        Pre-built Chroma client; when *None* an ``HttpClient`` is opened.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = "cosine",
        client: Any = None,
    ) -> None:
        super().__init__(collection_name)
        self._host = host
        self._port = port
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": distance_metric},
        )

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, vectors: list[EmbeddingVector]) -> None:
        if not vectors:
            return
        self._collection.upsert(
            ids=[v.id for v in vectors],
            embeddings=[v.values for v in vectors],
            documents=[v.metadata.text for v in vectors],
            metadatas=[_flatten_metadata(v) for v in vectors],
        )

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        self._collection.delete(ids=ids)
