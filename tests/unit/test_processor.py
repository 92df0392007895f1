"""Unit tests for the document processing pipeline.

All collaborators are in-memory fakes; no S3 or DynamoDB is needed.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from doc_retrieval.config import Settings
from doc_retrieval.errors import ConfigurationError
from doc_retrieval.ingestion.extractor import DefaultTextExtractor
from doc_retrieval.ingestion.processor import DocumentProcessor, chunk_id_for, object_key_from_record
from doc_retrieval.models import Document, ProcessingStatus
from doc_retrieval.stores.memory import InMemoryChunkStore, InMemoryDocumentStore, InMemoryObjectStorage

BUCKET = "uploads"


class RecordingDocumentStore(InMemoryDocumentStore):
    """Document store that remembers every status transition."""

    def __init__(self, documents: list[Document] | None = None) -> None:
        super().__init__(documents)
        self.transitions: list[tuple[str, ProcessingStatus, int | None]] = []

    def update_status(self, document_id, status, total_chunks=None) -> None:  # noqa: ANN001
        self.transitions.append((document_id, status, total_chunks))
        super().update_status(document_id, status, total_chunks)


def _s3_event(*keys: str) -> dict:
    return {"Records": [{"s3": {"bucket": {"name": BUCKET}, "object": {"key": k}}} for k in keys]}


@pytest.fixture()
def documents(pending_document: Document) -> RecordingDocumentStore:
    return RecordingDocumentStore([pending_document])


@pytest.fixture()
def chunks() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture()
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage({(BUCKET, "documents/hello.txt"): b"hello world"})


@pytest.fixture()
def processor(
    documents: RecordingDocumentStore,
    chunks: InMemoryChunkStore,
    storage: InMemoryObjectStorage,
    test_settings: Settings,
) -> DocumentProcessor:
    return DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)


# ── process_upload ───────────────────────────────────────────────────────


class TestProcessUpload:
    def test_plain_text_document_completes(self, processor, documents, chunks) -> None:
        outcome = processor.process_upload(BUCKET, "documents/hello.txt")

        assert outcome.status is ProcessingStatus.COMPLETED
        assert outcome.total_chunks == 1
        assert [(s, n) for _, s, n in documents.transitions] == [
            (ProcessingStatus.PROCESSING, None),
            (ProcessingStatus.COMPLETED, 1),
        ]

        stored = chunks.list_by_document("doc-1")
        assert len(stored) == 1
        assert stored[0].content == "hello world"
        assert stored[0].word_count == 2
        assert stored[0].chunk_index == 0
        assert stored[0].owner == "alice"
        assert stored[0].metadata == {"processingVersion": "1.0", "chunkSize": 1000, "overlap": 200}

        document = documents.get("doc-1")
        assert document.processing_status is ProcessingStatus.COMPLETED
        assert document.total_chunks == 1
        assert document.processed_at is not None

    def test_unknown_key_is_skipped(self, processor, documents, chunks, storage) -> None:
        storage.upload(BUCKET, "documents/other.txt", b"text")
        outcome = processor.process_upload(BUCKET, "documents/other.txt")

        assert outcome.status is None
        assert outcome.document_id is None
        assert documents.transitions == []
        assert chunks.list_all() == []

    def test_whitespace_only_text_fails(self, processor, documents, chunks, storage) -> None:
        storage.upload(BUCKET, "documents/hello.txt", b"  \n\t  ")
        outcome = processor.process_upload(BUCKET, "documents/hello.txt")

        assert outcome.status is ProcessingStatus.FAILED
        assert [s for _, s, _ in documents.transitions] == [ProcessingStatus.PROCESSING, ProcessingStatus.FAILED]
        assert chunks.list_all() == []

    def test_unsupported_format_fails(self, documents, chunks, storage, test_settings) -> None:
        documents.add(Document(id="doc-2", key="documents/image.png"))
        storage.upload(BUCKET, "documents/image.png", b"\x89PNG")
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)

        outcome = processor.process_upload(BUCKET, "documents/image.png")

        assert outcome.status is ProcessingStatus.FAILED
        assert "Unsupported file type" in (outcome.detail or "")
        assert documents.get("doc-2").processing_status is ProcessingStatus.FAILED

    def test_missing_object_fails(self, processor, documents, storage) -> None:
        storage._objects.clear()
        outcome = processor.process_upload(BUCKET, "documents/hello.txt")
        assert outcome.status is ProcessingStatus.FAILED
        assert documents.get("doc-1").processing_status is ProcessingStatus.FAILED

    def test_chunk_write_failure_marks_failed(self, documents, storage, test_settings) -> None:
        broken_chunks = MagicMock()
        broken_chunks.put.side_effect = RuntimeError("throttled")
        processor = DocumentProcessor(documents, broken_chunks, storage, DefaultTextExtractor(), settings=test_settings)

        outcome = processor.process_upload(BUCKET, "documents/hello.txt")

        assert outcome.status is ProcessingStatus.FAILED
        assert documents.transitions[-1][1] is ProcessingStatus.FAILED

    def test_secondary_status_failure_is_swallowed(self, pending_document, chunks, test_settings) -> None:
        documents = MagicMock()
        documents.find_by_key.return_value = pending_document
        documents.update_status.side_effect = RuntimeError("table unavailable")
        storage = InMemoryObjectStorage({(BUCKET, "documents/hello.txt"): b"hello world"})
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)

        outcome = processor.process_upload(BUCKET, "documents/hello.txt")

        assert outcome.status is ProcessingStatus.FAILED
        assert documents.update_status.call_count == 2
        assert chunks.list_all() == []

    def test_document_lookup_failure_is_skipped(self, chunks, storage, test_settings) -> None:
        documents = MagicMock()
        documents.find_by_key.side_effect = RuntimeError("scan failed")
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)

        outcome = processor.process_upload(BUCKET, "documents/hello.txt")

        assert outcome.status is None
        documents.update_status.assert_not_called()

    def test_configuration_error_propagates(self, chunks, storage, test_settings) -> None:
        documents = MagicMock()
        documents.find_by_key.side_effect = ConfigurationError("DOCUMENT_TABLE environment variable not set")
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)

        with pytest.raises(ConfigurationError):
            processor.process_upload(BUCKET, "documents/hello.txt")

    def test_long_document_chunk_ids_and_order(self, processor, documents, chunks, storage) -> None:
        storage.upload(BUCKET, "documents/hello.txt", ("word " * 600).encode())
        outcome = processor.process_upload(BUCKET, "documents/hello.txt")

        stored = chunks.list_by_document("doc-1")
        assert outcome.total_chunks == len(stored) == 4
        assert [c.chunk_index for c in stored] == [0, 1, 2, 3]
        run_ids = {c.id.rsplit("-", 1)[1] for c in stored}
        assert len(run_ids) == 1
        assert stored[2].id == chunk_id_for("doc-1", 2, int(run_ids.pop()))


# ── process_event ────────────────────────────────────────────────────────


class TestProcessEvent:
    def test_url_encoded_keys_are_decoded(self, documents, chunks, storage, test_settings) -> None:
        documents.add(Document(id="doc-2", key="documents/my notes.txt"))
        storage.upload(BUCKET, "documents/my notes.txt", b"some notes")
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)

        outcomes = processor.process_event(_s3_event("documents/my+notes.txt"))

        assert outcomes[0].object_key == "documents/my notes.txt"
        assert outcomes[0].status is ProcessingStatus.COMPLETED

    def test_keys_outside_prefix_are_skipped(self, processor, documents) -> None:
        outcomes = processor.process_event(_s3_event("avatars/me.txt"))
        assert outcomes[0].status is None
        assert documents.transitions == []

    def test_one_failure_does_not_abort_batch(self, documents, chunks, storage, test_settings) -> None:
        documents.add(Document(id="doc-2", key="documents/bad.bin"))
        storage.upload(BUCKET, "documents/bad.bin", b"\x00\x01")
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=test_settings)

        outcomes = processor.process_event(
            _s3_event("documents/bad.bin", "documents/missing.txt", "documents/hello.txt")
        )

        assert [o.status for o in outcomes] == [ProcessingStatus.FAILED, None, ProcessingStatus.COMPLETED]

    def test_malformed_records_are_ignored(self, processor) -> None:
        assert processor.process_event({"Records": [{"eventName": "ObjectCreated:Put"}]}) == []
        assert processor.process_event({}) == []

    def test_empty_prefix_disables_filter(self, documents, chunks, storage) -> None:
        documents.add(Document(id="doc-3", key="loose.txt"))
        storage.upload(BUCKET, "loose.txt", b"loose file")
        settings = Settings(documents_prefix="")
        processor = DocumentProcessor(documents, chunks, storage, DefaultTextExtractor(), settings=settings)

        outcomes = processor.process_event(_s3_event("loose.txt"))

        assert outcomes[0].status is ProcessingStatus.COMPLETED


def test_object_key_from_record() -> None:
    record = _s3_event("documents/a%2Bb+c.txt")["Records"][0]
    assert object_key_from_record(record) == (BUCKET, "documents/a+b c.txt")
