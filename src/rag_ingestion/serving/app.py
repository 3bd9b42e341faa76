"""FastAPI application exposing document ingestion as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import PurePath

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rag_ingestion.config import IngestionConfig, settings
from rag_ingestion.ingestion.exceptions import (
    EmbeddingFailedError,
    EmptyDocumentError,
    NoChunksError,
    VectorStoreError,
)
from rag_ingestion.ingestion.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = [".pdf", ".txt", ".md"]

app = FastAPI(
    title="RAG Ingestion API",
    version="0.1.0",
    description="Chunk, embed and index plain-text documents under the embedding API's rate limit.",
)


# ── Request / Response schemas ────────────────────────────────────────
class IngestRequest(BaseModel):
    """Decoded document text plus its original filename."""

    name: str
    text: str


class FileInfo(BaseModel):
    name: str
    size: int
    type: str
    chunks_created: int
    total_chunks: int
    success_rate: str


class IngestResponse(BaseModel):
    """Outcome of a completed ingestion."""

    status: str = "ok"
    chunks: int
    message: str
    file_info: FileInfo


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_pipeline() -> IngestionPipeline:
    """Build the default Chroma-backed pipeline once per process."""
    from rag_ingestion.vectorstore.chroma_store import ChromaVectorStore

    return IngestionPipeline(store=ChromaVectorStore(), config=IngestionConfig.from_settings())


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ingest")
async def ingest_info(pipeline: IngestionPipeline = Depends(get_pipeline)) -> JSONResponse:
    """Describe the upload contract; ingestion itself is POST only."""
    cfg = pipeline.config
    return JSONResponse(
        status_code=405,
        content={
            "error": "Method not allowed. Use POST to upload documents.",
            "supportedFormats": SUPPORTED_FORMATS,
            "maxSize": f"{settings.max_document_bytes // (1024 * 1024)}MB",
            "rateLimits": {
                "batchSize": cfg.batch_size,
                "delayBetweenBatches": f"{int(cfg.delay_between_batches * 1000)}ms",
                "maxRetries": cfg.max_retries,
            },
        },
    )


@app.post("/ingest", response_model=IngestResponse)
async def ingest(
    request: IngestRequest,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> IngestResponse:
    """Ingest one decoded document and report how many chunks were stored."""
    extension = PurePath(request.name).suffix.lower()
    if extension not in SUPPORTED_FORMATS:
        raise HTTPException(status_code=400, detail="Please upload a PDF, TXT, or MD file.")

    size = len(request.text.encode("utf-8"))
    if size > settings.max_document_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size must be less than {settings.max_document_bytes // (1024 * 1024)}MB.",
        )

    try:
        result = await pipeline.ingest_text(request.text, source=request.name)
    except (EmptyDocumentError, NoChunksError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except EmbeddingFailedError as exc:
        raise HTTPException(
            status_code=500,
            detail=f"{exc} Please try again with a smaller document or wait a few minutes.",
        ) from exc
    except VectorStoreError as exc:
        logger.error("Ingestion of %s failed at the vector store: %s", request.name, exc)
        raise HTTPException(
            status_code=500,
            detail="Failed to store document in the knowledge base. Please try again.",
        ) from exc

    return IngestResponse(
        chunks=result.chunks_created,
        message=result.message,
        file_info=FileInfo(
            name=request.name,
            size=size,
            type=extension,
            chunks_created=result.chunks_created,
            total_chunks=result.total_chunks,
            success_rate=f"{result.success_rate_percent}%",
        ),
    )
