"""In-memory vector index with cosine-similarity search.

The index holds one immutable snapshot of the embedding store.  A rebuild
materialises a brand-new snapshot and swaps the reference, so a search
always runs against either the old or the new snapshot, never a mix.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

import numpy as np

from doc_retrieval.errors import DimensionMismatchError
from doc_retrieval.models import IndexEntry, SearchResult
from doc_retrieval.stores.base import ChunkStore, EmbeddingStore

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, or ``0.0`` when either vector is all zeros.

    Raises
    ------
    DimensionMismatchError
        If *a* and *b* have different lengths.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Vectors must have the same length ({a.shape[0]} != {b.shape[0]})")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


class VectorIndex:
    """Snapshot of ``(chunk id, document id, chunk index, vector)`` rows.

    Parameters
    ----------
    embedding_store:
        Source of truth scanned by :meth:`rebuild`.
    chunk_store:
        Used by :meth:`search` to fetch the content of ranked chunks.
    """

    def __init__(self, embedding_store: EmbeddingStore, chunk_store: ChunkStore) -> None:
        self._embedding_store = embedding_store
        self._chunk_store = chunk_store
        self._snapshot: tuple[IndexEntry, ...] = ()
        self._rebuild_lock = threading.Lock()

    # -- snapshot -------------------------------------------------------------

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        """The current snapshot."""
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    @property
    def is_loaded(self) -> bool:
        return bool(self._snapshot)

    def rebuild(self) -> int:
        """Replace the snapshot with the full contents of the embedding store.

        Returns the number of indexed embeddings.
        """
        with self._rebuild_lock:
            logger.info("Rebuilding vector index...")
            entries: list[IndexEntry] = []
            for embedding in self._embedding_store.list_all():
                try:
                    entries.append(IndexEntry.from_embedding(embedding))
                except (TypeError, ValueError):
                    logger.warning("Skipping embedding %s with an unusable vector", embedding.id, exc_info=True)
            snapshot = tuple(entries)
            self._snapshot = snapshot
        if snapshot:
            logger.info("Vector index rebuilt with %d embeddings", len(snapshot))
        else:
            logger.info("No embeddings found, vector index is empty")
        return len(snapshot)

    # -- search ---------------------------------------------------------------

    def nearest(self, query_vector: Sequence[float], k: int) -> list[tuple[IndexEntry, float]]:
        """Return up to *k* index entries ranked by cosine similarity to *query_vector*.

        An empty index is rebuilt once before concluding there are no
        candidates.  A query whose length differs from an indexed vector
        raises :class:`DimensionMismatchError`.
        """
        snapshot = self._snapshot
        if not snapshot:
            self.rebuild()
            snapshot = self._snapshot
        if not snapshot or k <= 0:
            return []

        query = np.asarray(query_vector, dtype=np.float64)
        scored = [(entry, cosine_similarity(query, entry.vector)) for entry in snapshot]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[: min(k, len(scored))]

    def search(self, query_vector: Sequence[float], k: int) -> list[SearchResult]:
        """Rank chunks against *query_vector* and attach their current content.

        Candidates whose chunk can no longer be loaded are dropped.
        """
        results: list[SearchResult] = []
        for entry, similarity in self.nearest(query_vector, k):
            try:
                chunk = self._chunk_store.get_by_id(entry.id)
            except Exception:
                logger.warning("Error getting chunk content for %s", entry.id, exc_info=True)
                continue
            if chunk is None:
                logger.warning("Chunk %s is indexed but no longer stored; dropping it", entry.id)
                continue
            results.append(
                SearchResult(
                    chunk_id=entry.id,
                    document_id=entry.document_id,
                    chunk_index=entry.chunk_index,
                    content=chunk.content,
                    similarity=similarity,
                )
            )
        logger.info("Found %d similar chunks", len(results))
        return results
