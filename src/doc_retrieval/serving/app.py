"""FastAPI application exposing the retrieval service as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from doc_retrieval.config import configure_logging
from doc_retrieval.errors import ConfigurationError, DocRetrievalError, InvalidInputError
from doc_retrieval.models import CamelModel, EmbeddingRunSummary, IndexStatus, ProcessingOutcome, SearchResult
from doc_retrieval.service import RetrievalService, build_service

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Document Retrieval API",
    version="0.1.0",
    description="Document chunking, embedding generation and similarity search.",
)


@lru_cache(maxsize=1)
def get_service() -> RetrievalService:
    """Build the process-wide service once; tests override this dependency."""
    return build_service()


# ── Request / Response schemas ────────────────────────────────────────
class SearchRequest(BaseModel):
    """Similarity search request."""

    query: str = ""
    limit: int | None = Field(default=None, ge=0)


class SearchResponse(CamelModel):
    """Ranked chunks for a query."""

    query: str
    results: list[SearchResult]
    total_found: int


class ProcessUploadRequest(BaseModel):
    """Manually trigger processing of an uploaded object."""

    bucket: str
    key: str


# ── Error handling ────────────────────────────────────────────────────
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(DocRetrievalError)
async def retrieval_error_handler(request: Request, exc: DocRetrievalError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        logger.critical("Configuration error: %s", exc)
    else:
        logger.error("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/generate-embeddings", response_model=EmbeddingRunSummary)
def generate_embeddings(service: RetrievalService = Depends(get_service)) -> EmbeddingRunSummary:
    """Embed every chunk that has no embedding yet and rebuild the index."""
    return service.generate_embeddings_for_all_chunks()


@app.post("/search", response_model=SearchResponse)
def search(request: SearchRequest, service: RetrievalService = Depends(get_service)) -> SearchResponse:
    """Return the chunks most similar to the query."""
    results = service.search(request.query, request.limit)
    return SearchResponse(query=request.query, results=results, total_found=len(results))


@app.get("/status", response_model=IndexStatus)
def status(service: RetrievalService = Depends(get_service)) -> IndexStatus:
    """Chunk / embedding counts, coverage and index state."""
    return service.status()


@app.post("/process-upload", response_model=ProcessingOutcome)
def process_upload(
    request: ProcessUploadRequest,
    service: RetrievalService = Depends(get_service),
) -> ProcessingOutcome:
    """Process one uploaded object."""
    return service.process_upload(request.bucket, request.key)


@app.post("/events/s3", response_model=list[ProcessingOutcome])
def s3_event(event: dict[str, Any], service: RetrievalService = Depends(get_service)) -> list[ProcessingOutcome]:
    """Process a raw S3 upload notification."""
    return service.process_event(event)
