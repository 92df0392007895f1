"""Abstract record-store and object-storage interfaces.

The pipelines only talk to these ABCs.  Adding a backend (Postgres, a
different key-value store, ...) only requires subclassing them; see
:mod:`doc_retrieval.stores.memory` and :mod:`doc_retrieval.stores.dynamodb`
for the two shipped implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from doc_retrieval.models import Chunk, Document, Embedding, ProcessingStatus


class ObjectStorage(ABC):
    """Read access to uploaded file bytes."""

    @abstractmethod
    def fetch(self, bucket: str, key: str) -> bytes:
        """Return the full body of object *key* in *bucket*."""
        ...


class DocumentStore(ABC):
    """Document records, keyed by id and searchable by object key."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def find_by_key(self, key: str) -> Document | None:
        """Return the document whose source key is *key*, or ``None``."""
        ...

    @abstractmethod
    def update_status(
        self,
        document_id: str,
        status: ProcessingStatus,
        total_chunks: int | None = None,
    ) -> None:
        """Set the processing status (and optionally the chunk count) of a document.

        Implementations also stamp ``processed_at`` with the current time.
        """
        ...

    @abstractmethod
    def list_all(self) -> list[Document]:
        ...

    @abstractmethod
    def set_embeddings_generated(self, document_id: str, value: bool = True) -> None:
        ...


class ChunkStore(ABC):
    """Chunk records."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def put(self, chunk: Chunk) -> None:
        ...

    @abstractmethod
    def list_by_document(self, document_id: str) -> list[Chunk]:
        """Return the chunks of *document_id* ordered by ``chunk_index``."""
        ...

    @abstractmethod
    def list_all(self) -> list[Chunk]:
        ...

    @abstractmethod
    def get_by_id(self, chunk_id: str) -> Chunk | None:
        ...

    # -- optional overrides ---------------------------------------------------

    def count(self) -> int:
        """Number of stored chunks.  Backends with a cheaper count should override."""
        return len(self.list_all())


class EmbeddingStore(ABC):
    """Embedding records, keyed by :func:`~doc_retrieval.models.embedding_id_for`."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def exists(self, embedding_id: str) -> bool:
        ...

    @abstractmethod
    def put(self, embedding: Embedding) -> None:
        ...

    @abstractmethod
    def list_all(self) -> list[Embedding]:
        ...

    # -- optional overrides ---------------------------------------------------

    def count(self) -> int:
        """Number of stored embeddings.  Backends with a cheaper count should override."""
        return len(self.list_all())
