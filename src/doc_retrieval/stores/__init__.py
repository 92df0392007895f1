"""
Stores — record-store and object-storage collaborators.

Public surface
--------------
- :class:`DocumentStore`, :class:`ChunkStore`, :class:`EmbeddingStore`,
  :class:`ObjectStorage` — abstract interfaces.
- ``InMemory*`` — dict-backed implementations.
- ``Dynamo*`` / :class:`S3ObjectStorage` — AWS implementations (lazy).
"""

from doc_retrieval.stores.base import ChunkStore, DocumentStore, EmbeddingStore, ObjectStorage
from doc_retrieval.stores.memory import (
    InMemoryChunkStore,
    InMemoryDocumentStore,
    InMemoryEmbeddingStore,
    InMemoryObjectStorage,
)

__all__ = [
    "ChunkStore",
    "DocumentStore",
    "DynamoChunkStore",
    "DynamoDocumentStore",
    "DynamoEmbeddingStore",
    "EmbeddingStore",
    "InMemoryChunkStore",
    "InMemoryDocumentStore",
    "InMemoryEmbeddingStore",
    "InMemoryObjectStorage",
    "ObjectStorage",
    "S3ObjectStorage",
]

_AWS_STORES = {
    "DynamoChunkStore": "doc_retrieval.stores.dynamodb",
    "DynamoDocumentStore": "doc_retrieval.stores.dynamodb",
    "DynamoEmbeddingStore": "doc_retrieval.stores.dynamodb",
    "S3ObjectStorage": "doc_retrieval.stores.s3",
}


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the AWS adapters to avoid pulling in boto3 at import time."""
    if name in _AWS_STORES:
        import importlib

        return getattr(importlib.import_module(_AWS_STORES[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
