"""Service facade — wires collaborators together and exposes the core operations.

One :class:`RetrievalService` owns one :class:`VectorIndex`; the embedding
pipeline rebuilds it and the retriever searches it.
"""

from __future__ import annotations

import logging
from typing import Any

from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.embedding.client import EmbeddingClient, get_embedding_client
from doc_retrieval.embedding.pipeline import EmbeddingPipeline
from doc_retrieval.ingestion.extractor import DefaultTextExtractor, TextExtractor
from doc_retrieval.ingestion.processor import DocumentProcessor
from doc_retrieval.models import EmbeddingRunSummary, IndexStatus, ProcessingOutcome, SearchResult
from doc_retrieval.retrieval.index import VectorIndex
from doc_retrieval.retrieval.retriever import SemanticRetriever
from doc_retrieval.stores.base import ChunkStore, DocumentStore, EmbeddingStore, ObjectStorage
from doc_retrieval.stores.memory import (
    InMemoryChunkStore,
    InMemoryDocumentStore,
    InMemoryEmbeddingStore,
    InMemoryObjectStorage,
)

logger = logging.getLogger(__name__)


class RetrievalService:
    """Document processing, embedding generation and similarity search.

    Parameters
    ----------
    document_store / chunk_store / embedding_store:
        Record stores.
    storage:
        Object storage holding uploaded files.
    client:
        Embedding model client.
    extractor:
        Text extractor; defaults to :class:`DefaultTextExtractor`.
    settings:
        Shared configuration.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        chunk_store: ChunkStore,
        embedding_store: EmbeddingStore,
        storage: ObjectStorage,
        client: EmbeddingClient,
        *,
        extractor: TextExtractor | None = None,
        settings: Settings = default_settings,
    ) -> None:
        self.document_store = document_store
        self.chunk_store = chunk_store
        self.embedding_store = embedding_store
        self.storage = storage

        self.index = VectorIndex(embedding_store, chunk_store)
        self.processor = DocumentProcessor(
            document_store,
            chunk_store,
            storage,
            extractor or DefaultTextExtractor(),
            settings=settings,
        )
        self.embeddings = EmbeddingPipeline(
            chunk_store,
            embedding_store,
            client,
            self.index,
            document_store=document_store,
            settings=settings,
        )
        self.retriever = SemanticRetriever(
            self.embeddings,
            self.index,
            chunk_store,
            embedding_store,
            settings=settings,
        )

    # -- core operations ------------------------------------------------------

    def process_upload(self, bucket: str, object_key: str) -> ProcessingOutcome:
        return self.processor.process_upload(bucket, object_key)

    def process_event(self, event: dict[str, Any]) -> list[ProcessingOutcome]:
        return self.processor.process_event(event)

    def generate_embeddings_for_all_chunks(self) -> EmbeddingRunSummary:
        return self.embeddings.generate_embeddings_for_all_chunks()

    def generate_embedding(self, text: str) -> list[float]:
        return self.embeddings.generate_embedding(text)

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        return self.retriever.search(query, limit)

    def status(self) -> IndexStatus:
        return self.retriever.status()


def build_service(settings: Settings = default_settings) -> RetrievalService:
    """Wire a service against S3, DynamoDB and the configured embedding backend.

    Raises
    ------
    ConfigurationError
        If a table name is not configured.
    """
    from doc_retrieval.stores.dynamodb import DynamoChunkStore, DynamoDocumentStore, DynamoEmbeddingStore
    from doc_retrieval.stores.s3 import S3ObjectStorage

    settings.require("document_table", "document_chunk_table", "embeddings_table")
    logger.info(
        "Building retrieval service (documents=%s, chunks=%s, embeddings=%s, model=%s)",
        settings.document_table,
        settings.document_chunk_table,
        settings.embeddings_table,
        settings.embedding_model,
    )
    return RetrievalService(
        DynamoDocumentStore(settings=settings),
        DynamoChunkStore(settings=settings),
        DynamoEmbeddingStore(settings=settings),
        S3ObjectStorage(settings=settings),
        get_embedding_client(settings),
        settings=settings,
    )


def build_in_memory_service(
    client: EmbeddingClient,
    settings: Settings = default_settings,
) -> RetrievalService:
    """Wire a service against in-memory stores (tests, local experiments)."""
    return RetrievalService(
        InMemoryDocumentStore(),
        InMemoryChunkStore(),
        InMemoryEmbeddingStore(),
        InMemoryObjectStorage(),
        client,
        settings=settings,
    )
