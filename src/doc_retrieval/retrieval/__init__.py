"""
Retrieval — in-memory vector index and semantic search.

Public surface
--------------
- :class:`VectorIndex` — snapshot index rebuilt from the embedding store.
- :func:`cosine_similarity` — the ranking function.
- :class:`SemanticRetriever` — query text to ranked chunks, ``status()``.
"""

from doc_retrieval.retrieval.index import VectorIndex, cosine_similarity
from doc_retrieval.retrieval.retriever import SemanticRetriever

__all__ = [
    "SemanticRetriever",
    "VectorIndex",
    "cosine_similarity",
]
