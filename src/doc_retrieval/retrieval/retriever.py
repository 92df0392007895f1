"""Semantic retriever — query text to ranked chunks, plus index diagnostics.

Usage::

    from doc_retrieval.service import build_service

    service = build_service()
    for r in service.retriever.search("How are documents chunked?", limit=5):
        print(f"{r.similarity:.3f}", r.document_id, r.content[:80])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.errors import InvalidInputError
from doc_retrieval.models import IndexStatus, SearchResult
from doc_retrieval.retrieval.index import VectorIndex
from doc_retrieval.stores.base import ChunkStore, EmbeddingStore

if TYPE_CHECKING:
    from doc_retrieval.embedding.pipeline import EmbeddingPipeline

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """Embeds queries and searches the shared :class:`VectorIndex`.

    Parameters
    ----------
    embedder:
        Pipeline used to embed the query text with the same model (and the
        same dimension checks) as the stored chunks.
    index:
        The vector index, shared with the embedding pipeline.
    chunk_store / embedding_store:
        Counted by :meth:`status`.
    settings:
        Supplies the default result limit.
    """

    def __init__(
        self,
        embedder: EmbeddingPipeline,
        index: VectorIndex,
        chunk_store: ChunkStore,
        embedding_store: EmbeddingStore,
        *,
        settings: Settings = default_settings,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._chunk_store = chunk_store
        self._embedding_store = embedding_store
        self.default_limit = settings.max_search_results

    # -- public API -----------------------------------------------------------

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        """Return up to *limit* chunks most similar to *query*.

        Raises
        ------
        InvalidInputError
            If *query* is blank.
        """
        if not query or not query.strip():
            raise InvalidInputError("Query is required")

        logger.info("Searching for similar chunks: %r", query)
        query_vector = self._embedder.generate_embedding(query)
        return self.search_by_embedding(query_vector, limit)

    def search_by_embedding(self, query_vector: list[float], limit: int | None = None) -> list[SearchResult]:
        """Same as :meth:`search` but accepts a pre-computed query vector."""
        limit = self.default_limit if limit is None else limit
        return self._index.search(query_vector, limit)

    def status(self) -> IndexStatus:
        """Report chunk / embedding counts, coverage and index state."""
        total_chunks = self._chunk_store.count()
        total_embeddings = self._embedding_store.count()
        coverage = round(total_embeddings / total_chunks * 100, 1) if total_chunks else 0.0
        return IndexStatus(
            total_chunks=total_chunks,
            total_embeddings=total_embeddings,
            embedding_coverage=coverage,
            vector_index_loaded=self._index.is_loaded,
            vector_index_size=len(self._index),
            model=self._embedder.model_id,
            dimension=self._embedder.dimension,
        )
