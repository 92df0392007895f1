"""In-memory store implementations for tests and local development."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from doc_retrieval.errors import NotFoundError
from doc_retrieval.models import Chunk, Document, Embedding, ProcessingStatus
from doc_retrieval.stores.base import ChunkStore, DocumentStore, EmbeddingStore, ObjectStorage


class InMemoryObjectStorage(ObjectStorage):
    """Dict-backed object storage keyed by ``(bucket, key)``."""

    def __init__(self, objects: dict[tuple[str, str], bytes] | None = None) -> None:
        self._objects: dict[tuple[str, str], bytes] = dict(objects or {})

    def upload(self, bucket: str, key: str, data: bytes) -> None:
        self._objects[(bucket, key)] = data

    def fetch(self, bucket: str, key: str) -> bytes:
        try:
            return self._objects[(bucket, key)]
        except KeyError:
            raise FileNotFoundError(f"s3://{bucket}/{key}") from None


class InMemoryDocumentStore(DocumentStore):
    """Document store holding :class:`Document` copies in a dict."""

    def __init__(self, documents: list[Document] | None = None) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        for document in documents or []:
            self.add(document)

    def add(self, document: Document) -> None:
        with self._lock:
            self._documents[document.id] = document.model_copy()

    def get(self, document_id: str) -> Document | None:
        document = self._documents.get(document_id)
        return document.model_copy() if document else None

    def find_by_key(self, key: str) -> Document | None:
        for document in self._documents.values():
            if document.key == key:
                return document.model_copy()
        return None

    def update_status(
        self,
        document_id: str,
        status: ProcessingStatus,
        total_chunks: int | None = None,
    ) -> None:
        with self._lock:
            document = self._require(document_id)
            update: dict = {"processing_status": status, "processed_at": datetime.now(timezone.utc)}
            if total_chunks is not None:
                update["total_chunks"] = total_chunks
            self._documents[document_id] = document.model_copy(update=update)

    def list_all(self) -> list[Document]:
        return [document.model_copy() for document in self._documents.values()]

    def set_embeddings_generated(self, document_id: str, value: bool = True) -> None:
        with self._lock:
            document = self._require(document_id)
            self._documents[document_id] = document.model_copy(update={"embeddings_generated": value})

    def _require(self, document_id: str) -> Document:
        try:
            return self._documents[document_id]
        except KeyError:
            raise NotFoundError(f"Document {document_id} not found") from None


class InMemoryChunkStore(ChunkStore):
    """Chunk store preserving insertion order."""

    def __init__(self, chunks: list[Chunk] | None = None) -> None:
        self._chunks: dict[str, Chunk] = {}
        for chunk in chunks or []:
            self.put(chunk)

    def put(self, chunk: Chunk) -> None:
        self._chunks[chunk.id] = chunk

    def list_by_document(self, document_id: str) -> list[Chunk]:
        chunks = [c for c in self._chunks.values() if c.document_id == document_id]
        return sorted(chunks, key=lambda c: c.chunk_index)

    def list_all(self) -> list[Chunk]:
        return list(self._chunks.values())

    def get_by_id(self, chunk_id: str) -> Chunk | None:
        return self._chunks.get(chunk_id)

    def count(self) -> int:
        return len(self._chunks)


class InMemoryEmbeddingStore(EmbeddingStore):
    """Embedding store keyed by embedding id."""

    def __init__(self, embeddings: list[Embedding] | None = None) -> None:
        self._embeddings: dict[str, Embedding] = {}
        for embedding in embeddings or []:
            self.put(embedding)

    def exists(self, embedding_id: str) -> bool:
        return embedding_id in self._embeddings

    def put(self, embedding: Embedding) -> None:
        self._embeddings[embedding.id] = embedding

    def list_all(self) -> list[Embedding]:
        return list(self._embeddings.values())

    def count(self) -> int:
        return len(self._embeddings)
