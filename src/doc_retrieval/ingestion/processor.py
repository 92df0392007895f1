"""Document processing pipeline — upload notification to stored chunks.

Each document moves through ``pending -> processing -> completed`` or
``pending -> processing -> failed``.  Events are handled one at a time and
independently: a failing document is marked ``failed`` and the next event
is processed as usual.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import unquote_plus

from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.errors import ConfigurationError
from doc_retrieval.ingestion.chunker import chunk_text
from doc_retrieval.ingestion.extractor import TextExtractor
from doc_retrieval.models import Chunk, ChunkSpan, Document, ProcessingOutcome, ProcessingStatus
from doc_retrieval.stores.base import ChunkStore, DocumentStore, ObjectStorage

logger = logging.getLogger(__name__)

PROCESSING_VERSION = "1.0"


def chunk_id_for(document_id: str, chunk_index: int, run_id: int) -> str:
    """Return the id of chunk *chunk_index* written by processing run *run_id*."""
    return f"{document_id}-chunk-{chunk_index}-{run_id}"


def object_key_from_record(record: dict[str, Any]) -> tuple[str, str]:
    """Return ``(bucket, key)`` from one S3 notification record.

    S3 URL-encodes keys in notifications and encodes spaces as ``+``.
    """
    s3 = record["s3"]
    return s3["bucket"]["name"], unquote_plus(s3["object"]["key"])


class DocumentProcessor:
    """Extracts, chunks and stores uploaded documents.

    Parameters
    ----------
    document_store:
        Where document records are looked up and their status is updated.
    chunk_store:
        Destination for the produced chunks.
    storage:
        Object storage holding the uploaded bytes.
    extractor:
        Converts bytes to text based on the file suffix.
    settings:
        Chunking parameters and the accepted key prefix.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        chunk_store: ChunkStore,
        storage: ObjectStorage,
        extractor: TextExtractor,
        *,
        settings: Settings = default_settings,
    ) -> None:
        self._documents = document_store
        self._chunks = chunk_store
        self._storage = storage
        self._extractor = extractor
        self._settings = settings

    # -- public API -----------------------------------------------------------

    def process_event(self, event: dict[str, Any]) -> list[ProcessingOutcome]:
        """Process every record of an S3 notification *event*.

        Keys outside ``settings.documents_prefix`` are skipped.  Only a
        :class:`ConfigurationError` propagates; any other failure is local
        to its record.
        """
        outcomes: list[ProcessingOutcome] = []
        for record in event.get("Records", []):
            try:
                bucket, key = object_key_from_record(record)
            except (KeyError, TypeError):
                logger.error("Skipping malformed S3 notification record: %r", record)
                continue

            prefix = self._settings.documents_prefix
            if prefix and not key.startswith(prefix):
                logger.info("Skipping non-document file: %s", key)
                outcomes.append(ProcessingOutcome(object_key=key, detail="outside documents prefix"))
                continue

            outcomes.append(self.process_upload(bucket, key))
        return outcomes

    def process_upload(self, bucket: str, object_key: str) -> ProcessingOutcome:
        """Run one document through extraction, chunking and chunk storage.

        Parameters
        ----------
        bucket:
            Bucket holding the uploaded object.
        object_key:
            Object key, also the document record's source key.

        Returns
        -------
        ProcessingOutcome
            Final status, or ``status=None`` when no document matched.
        """
        logger.info("Processing document %s from bucket %s", object_key, bucket)

        try:
            document = self._documents.find_by_key(object_key)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.exception("Error finding document by key %s", object_key)
            return ProcessingOutcome(object_key=object_key, detail=f"document lookup failed: {exc}")
        if document is None:
            logger.warning("Document not found in database: %s", object_key)
            return ProcessingOutcome(object_key=object_key, detail="document not found")

        try:
            return self._process(document, bucket, object_key)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.exception("Error processing document %s", object_key)
            self._mark_failed(document.id)
            return ProcessingOutcome(
                object_key=object_key,
                document_id=document.id,
                status=ProcessingStatus.FAILED,
                detail=str(exc),
            )

    # -- internals ------------------------------------------------------------

    def _process(self, document: Document, bucket: str, object_key: str) -> ProcessingOutcome:
        self._documents.update_status(document.id, ProcessingStatus.PROCESSING)

        data = self._storage.fetch(bucket, object_key)
        text = self._extractor.extract(object_key, data)
        if not text or not text.strip():
            logger.error("No text extracted from document: %s", object_key)
            self._documents.update_status(document.id, ProcessingStatus.FAILED)
            return ProcessingOutcome(
                object_key=object_key,
                document_id=document.id,
                status=ProcessingStatus.FAILED,
                detail="no text extracted",
            )
        logger.info("Extracted %d characters from %s", len(text), object_key)

        spans = chunk_text(text, self._settings.chunk_size, self._settings.chunk_overlap)
        logger.info("Created %d chunks for %s", len(spans), object_key)

        self._store_chunks(document, spans)
        self._documents.update_status(document.id, ProcessingStatus.COMPLETED, total_chunks=len(spans))
        logger.info("Successfully processed document: %s", object_key)

        return ProcessingOutcome(
            object_key=object_key,
            document_id=document.id,
            status=ProcessingStatus.COMPLETED,
            total_chunks=len(spans),
        )

    def _store_chunks(self, document: Document, spans: list[ChunkSpan]) -> None:
        run_id = time.time_ns() // 1_000_000
        metadata = {
            "processingVersion": PROCESSING_VERSION,
            "chunkSize": self._settings.chunk_size,
            "overlap": self._settings.chunk_overlap,
        }
        for span in spans:
            self._chunks.put(
                Chunk(
                    id=chunk_id_for(document.id, span.index, run_id),
                    document_id=document.id,
                    chunk_index=span.index,
                    content=span.content,
                    word_count=span.word_count,
                    start_position=span.start_position,
                    end_position=span.end_position,
                    metadata=dict(metadata),
                    owner=document.owner,
                )
            )
            logger.debug("Stored chunk %d/%d for %s", span.index + 1, len(spans), document.id)

    def _mark_failed(self, document_id: str) -> None:
        """Best-effort ``failed`` transition; a second failure is only logged."""
        try:
            self._documents.update_status(document_id, ProcessingStatus.FAILED)
        except ConfigurationError:
            raise
        except Exception:
            logger.exception("Error updating failed status for document %s", document_id)
