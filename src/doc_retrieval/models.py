"""Domain models for documents, chunks, embeddings and search results.

Record models serialise to the camelCase attribute names used by the
record stores (``processingStatus``, ``chunkIndex``, ...) while keeping
snake_case attributes in Python.  Use ``model_dump(by_alias=True)`` when
writing to a store and ``Model.model_validate(item)`` when reading back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

EMBEDDING_ID_SUFFIX = "-embedding"


def embedding_id_for(chunk_id: str) -> str:
    """Return the deterministic embedding id for *chunk_id*.

    At most one embedding exists per chunk; the embedding pipeline relies
    on this to skip chunks that were already embedded.
    """
    return f"{chunk_id}{EMBEDDING_ID_SUFFIX}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingStatus(str, Enum):
    """Lifecycle of a document inside the processing pipeline."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (``model_dump(by_alias=True)``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(CamelModel):
    """Base for models persisted in a record store."""


class Document(Record):
    """An uploaded document and its processing state.

    Attributes
    ----------
    id:
        Record identifier.
    key:
        Object-storage key of the uploaded file (e.g. ``documents/a.txt``).
    owner:
        Ownership tag copied onto every chunk; ``None`` when unknown.
    processing_status:
        Current state of the processing state machine.
    total_chunks:
        Number of chunks written by the last successful run.
    embeddings_generated:
        ``True`` once every chunk of the document has an embedding.
    """

    id: str
    key: str
    name: str | None = None
    owner: str | None = None
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    total_chunks: int | None = None
    embeddings_generated: bool = False
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None


class Chunk(Record):
    """A bounded window of a document's extracted text."""

    id: str
    document_id: str
    chunk_index: int
    content: str
    word_count: int
    start_position: int
    end_position: int
    metadata: dict[str, Any] = Field(default_factory=dict)
    owner: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class Embedding(Record):
    """The vector computed for one chunk.

    ``id`` is always ``embedding_id_for(chunk_id)``.  The vector is stored
    under the ``embedding`` attribute.
    """

    id: str
    chunk_id: str
    document_id: str
    chunk_index: int
    vector: list[float] = Field(alias="embedding")
    model: str = ""
    dimension: int = 0
    content_preview: str = ""
    word_count: int | None = None
    owner: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="before")
    @classmethod
    def _lift_metadata(cls, data: Any) -> Any:
        """Accept items that keep model, preview and timestamps under ``metadata``."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        metadata = data.pop("metadata", None) or {}
        for field, source in (
            ("model", "model"),
            ("content_preview", "content"),
            ("word_count", "wordCount"),
            ("created_at", "createdAt"),
        ):
            alias = to_camel(field)
            if field not in data and alias not in data and source in metadata:
                data[alias] = metadata[source]
        vector = data.get("embedding", data.get("vector"))
        if "dimension" not in data and isinstance(vector, (list, tuple)):
            data["dimension"] = len(vector)
        return data


@dataclass(frozen=True)
class ChunkSpan:
    """One window produced by the chunker, before it becomes a :class:`Chunk`."""

    index: int
    content: str
    word_count: int
    start_position: int
    end_position: int


@dataclass(frozen=True, eq=False)
class IndexEntry:
    """In-memory vector index row, derived from an :class:`Embedding`."""

    id: str
    document_id: str
    chunk_index: int
    vector: np.ndarray

    @classmethod
    def from_embedding(cls, embedding: Embedding) -> IndexEntry:
        vector = np.asarray(embedding.vector, dtype=np.float64)
        vector.setflags(write=False)
        return cls(
            id=embedding.chunk_id,
            document_id=embedding.document_id,
            chunk_index=embedding.chunk_index,
            vector=vector,
        )


class SearchResult(CamelModel):
    """A chunk ranked by similarity to a query."""

    chunk_id: str
    document_id: str
    chunk_index: int
    content: str
    similarity: float


class EmbeddingRunSummary(CamelModel):
    """Aggregate counts from one embedding-generation pass."""

    message: str
    processed: int = 0
    errors: int = 0
    total: int = 0
    created: int = 0
    skipped: int = 0


class ProcessingOutcome(CamelModel):
    """Result of handling one upload notification.

    ``status`` is ``None`` when the event was skipped without touching
    any document record.
    """

    object_key: str
    document_id: str | None = None
    status: ProcessingStatus | None = None
    total_chunks: int | None = None
    detail: str | None = None


class IndexStatus(CamelModel):
    """Read-only diagnostics for the embeddings subsystem."""

    total_chunks: int
    total_embeddings: int
    embedding_coverage: float
    vector_index_loaded: bool
    vector_index_size: int
    model: str
    dimension: int
