"""Embedding pipeline — chunks in, embeddings out, index rebuilt.

The pipeline is safe to re-run at any time: every chunk maps to exactly
one embedding id (:func:`~doc_retrieval.models.embedding_id_for`), and a
chunk whose embedding already exists is skipped.  A partial run therefore
resumes where it stopped, and chunks that failed are simply retried on
the next invocation.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict

from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.embedding.client import EmbeddingClient
from doc_retrieval.errors import ConfigurationError, DimensionMismatchError, InvalidInputError
from doc_retrieval.models import Chunk, Embedding, EmbeddingRunSummary, embedding_id_for
from doc_retrieval.retrieval.index import VectorIndex
from doc_retrieval.stores.base import ChunkStore, DocumentStore, EmbeddingStore

logger = logging.getLogger(__name__)


class EmbeddingPipeline:
    """Generates embeddings for stored chunks and refreshes the vector index.

    Parameters
    ----------
    chunk_store / embedding_store:
        Record stores read and written by the pipeline.
    client:
        Embedding model client.
    index:
        Vector index rebuilt after every generation pass.
    document_store:
        Optional; when given, documents whose chunks are all embedded get
        their ``embeddings_generated`` flag set.
    settings:
        Batch size, preview length and dimension checks.
    """

    def __init__(
        self,
        chunk_store: ChunkStore,
        embedding_store: EmbeddingStore,
        client: EmbeddingClient,
        index: VectorIndex,
        *,
        document_store: DocumentStore | None = None,
        settings: Settings = default_settings,
    ) -> None:
        self._chunk_store = chunk_store
        self._embedding_store = embedding_store
        self._client = client
        self._index = index
        self._document_store = document_store
        self._settings = settings

    @property
    def model_id(self) -> str:
        return self._client.model_id

    @property
    def dimension(self) -> int:
        return self._client.dimension

    # -- public API -----------------------------------------------------------

    def generate_embedding(self, text: str) -> list[float]:
        """Embed *text* with the configured model.

        Raises
        ------
        InvalidInputError
            If *text* is blank.
        DimensionMismatchError
            If dimension validation is enabled and the model returned a
            vector of the wrong length.
        """
        if not text or not text.strip():
            raise InvalidInputError("Cannot embed empty text")

        vector = self._client.embed(text)
        if self._settings.validate_embedding_dimension and len(vector) != self.dimension:
            raise DimensionMismatchError(
                f"{self.model_id} returned {len(vector)} dimensions, expected {self.dimension}"
            )
        return vector

    def generate_embeddings_for_all_chunks(self) -> EmbeddingRunSummary:
        """Embed every chunk that has no embedding yet, then rebuild the index.

        One chunk's failure is logged and counted; the run continues.  Only
        a :class:`ConfigurationError` aborts it.
        """
        logger.info("Starting embeddings generation for all chunks")
        chunks = self._chunk_store.list_all()
        total = len(chunks)
        logger.info("Found %d chunks to process", total)

        summary = EmbeddingRunSummary(message="Embeddings generation completed", total=total)
        if not chunks:
            summary.message = "No chunks found to process"

        embedded: set[str] = set()
        batch_size = max(self._settings.embedding_batch_size, 1)
        batch_count = math.ceil(total / batch_size)
        for batch_number, start in enumerate(range(0, total, batch_size), 1):
            logger.info("Processing batch %d/%d", batch_number, batch_count)
            for chunk in chunks[start : start + batch_size]:
                try:
                    created = self._embed_chunk(chunk)
                except ConfigurationError:
                    raise
                except Exception:
                    summary.errors += 1
                    logger.exception("Failed to process chunk %s", chunk.id)
                    continue

                summary.processed += 1
                embedded.add(chunk.id)
                if created:
                    summary.created += 1
                    logger.info("Processed chunk %d/%d: %s", summary.processed, total, chunk.id)
                else:
                    summary.skipped += 1

        self._index.rebuild()
        self._mark_embedded_documents(chunks, embedded)

        logger.info(
            "Embeddings generation finished: processed=%d created=%d skipped=%d errors=%d total=%d",
            summary.processed,
            summary.created,
            summary.skipped,
            summary.errors,
            summary.total,
        )
        return summary

    # -- internals ------------------------------------------------------------

    def _embed_chunk(self, chunk: Chunk) -> bool:
        """Embed and store *chunk*; return ``False`` if it was already embedded or is blank."""
        if not chunk.content.strip():
            logger.debug("Skipping chunk %s - no content to embed", chunk.id)
            return False

        embedding_id = embedding_id_for(chunk.id)
        if self._embedding_store.exists(embedding_id):
            logger.debug("Skipping chunk %s - embedding exists", chunk.id)
            return False

        vector = self.generate_embedding(chunk.content)
        self._embedding_store.put(
            Embedding(
                id=embedding_id,
                chunk_id=chunk.id,
                document_id=chunk.document_id,
                chunk_index=chunk.chunk_index,
                vector=vector,
                model=self.model_id,
                dimension=len(vector),
                content_preview=chunk.content[: self._settings.content_preview_length],
                word_count=chunk.word_count,
                owner=chunk.owner,
            )
        )
        return True

    def _mark_embedded_documents(self, chunks: list[Chunk], embedded: set[str]) -> None:
        if self._document_store is None:
            return

        by_document: dict[str, list[str]] = defaultdict(list)
        for chunk in chunks:
            by_document[chunk.document_id].append(chunk.id)

        for document_id, chunk_ids in by_document.items():
            if not all(chunk_id in embedded for chunk_id in chunk_ids):
                continue
            try:
                self._document_store.set_embeddings_generated(document_id, True)
            except ConfigurationError:
                raise
            except Exception:
                logger.warning("Could not flag document %s as embedded", document_id, exc_info=True)
