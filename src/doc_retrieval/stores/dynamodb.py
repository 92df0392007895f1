"""DynamoDB implementations of the record stores.

Items use the camelCase attribute names of the record schema
(``processingStatus``, ``chunkIndex``, ``embedding`` ...).  DynamoDB has no
float type, so numbers go in as :class:`~decimal.Decimal` and come back out
as ``int`` / ``float``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, TypeVar

from boto3.dynamodb.conditions import Attr
from pydantic import BaseModel, ValidationError

from doc_retrieval import aws
from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.errors import ConfigurationError
from doc_retrieval.models import Chunk, Document, Embedding, ProcessingStatus
from doc_retrieval.stores.base import ChunkStore, DocumentStore, EmbeddingStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def to_item(record: BaseModel) -> dict[str, Any]:
    """Serialise *record* to a DynamoDB item (aliases, ISO dates, Decimals)."""
    payload = record.model_dump(by_alias=True, mode="json", exclude_none=True)
    return json.loads(json.dumps(payload), parse_float=Decimal)


def from_dynamo(value: Any) -> Any:
    """Recursively convert the ``Decimal`` values boto3 returns to ``int`` / ``float``."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    return value


class _DynamoTable:
    """Shared plumbing: table handle, paginated scans, counts."""

    #: Name of the :class:`Settings` field holding the table name.
    setting_name = ""

    def __init__(
        self,
        table_name: str | None = None,
        *,
        dynamodb: Any = None,
        settings: Settings = default_settings,
    ) -> None:
        table_name = table_name if table_name is not None else getattr(settings, self.setting_name)
        if not table_name:
            raise ConfigurationError(f"{self.setting_name.upper()} environment variable not set")
        self.table_name = table_name
        dynamodb = dynamodb if dynamodb is not None else aws.resource("dynamodb", settings)
        self._table = dynamodb.Table(table_name)

    def _scan(self, **kwargs: Any) -> Iterator[dict[str, Any]]:
        while True:
            response = self._table.scan(**kwargs)
            for item in response.get("Items", []):
                yield from_dynamo(item)
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            kwargs["ExclusiveStartKey"] = last_key

    def _count(self) -> int:
        total = 0
        kwargs: dict[str, Any] = {"Select": "COUNT"}
        while True:
            response = self._table.scan(**kwargs)
            total += response.get("Count", 0)
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return total
            kwargs["ExclusiveStartKey"] = last_key

    def _get(self, record_id: str, **kwargs: Any) -> dict[str, Any] | None:
        item = self._table.get_item(Key={"id": record_id}, **kwargs).get("Item")
        return from_dynamo(item) if item else None

    def _validated(self, model: type[RecordT], items: Iterable[dict[str, Any]]) -> list[RecordT]:
        """Parse scanned items, skipping any that do not fit *model*."""
        records: list[RecordT] = []
        for item in items:
            try:
                records.append(model.model_validate(item))
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed %s item %s in %s: %s", model.__name__, item.get("id"), self.table_name, exc
                )
        return records


class DynamoDocumentStore(_DynamoTable, DocumentStore):
    """Document records in the ``DOCUMENT_TABLE`` table."""

    setting_name = "document_table"

    def find_by_key(self, key: str) -> Document | None:
        logger.debug("Searching for document with key %s in %s", key, self.table_name)
        for item in self._scan(FilterExpression=Attr("key").eq(key)):
            return Document.model_validate(item)
        return None

    def update_status(
        self,
        document_id: str,
        status: ProcessingStatus,
        total_chunks: int | None = None,
    ) -> None:
        expression = "SET processingStatus = :status, processedAt = :processedAt"
        values: dict[str, Any] = {
            ":status": ProcessingStatus(status).value,
            ":processedAt": datetime.now(timezone.utc).isoformat(),
        }
        if total_chunks is not None:
            expression += ", totalChunks = :totalChunks"
            values[":totalChunks"] = total_chunks

        self._table.update_item(
            Key={"id": document_id},
            UpdateExpression=expression,
            ExpressionAttributeValues=values,
        )
        logger.info("Updated document %s status to %s", document_id, ProcessingStatus(status).value)

    def list_all(self) -> list[Document]:
        return self._validated(Document, self._scan())

    def set_embeddings_generated(self, document_id: str, value: bool = True) -> None:
        self._table.update_item(
            Key={"id": document_id},
            UpdateExpression="SET embeddingsGenerated = :value",
            ExpressionAttributeValues={":value": value},
        )


class DynamoChunkStore(_DynamoTable, ChunkStore):
    """Chunk records in the ``DOCUMENT_CHUNK_TABLE`` table."""

    setting_name = "document_chunk_table"

    def put(self, chunk: Chunk) -> None:
        self._table.put_item(Item=to_item(chunk))

    def list_by_document(self, document_id: str) -> list[Chunk]:
        chunks = self._validated(Chunk, self._scan(FilterExpression=Attr("documentId").eq(document_id)))
        return sorted(chunks, key=lambda c: c.chunk_index)

    def list_all(self) -> list[Chunk]:
        return self._validated(Chunk, self._scan())

    def get_by_id(self, chunk_id: str) -> Chunk | None:
        item = self._get(chunk_id)
        return Chunk.model_validate(item) if item else None

    def count(self) -> int:
        return self._count()


class DynamoEmbeddingStore(_DynamoTable, EmbeddingStore):
    """Embedding records in the ``EMBEDDINGS_TABLE`` table."""

    setting_name = "embeddings_table"

    def exists(self, embedding_id: str) -> bool:
        return self._get(embedding_id, ProjectionExpression="id") is not None

    def put(self, embedding: Embedding) -> None:
        self._table.put_item(Item=to_item(embedding))

    def list_all(self) -> list[Embedding]:
        return self._validated(Embedding, self._scan())

    def count(self) -> int:
        return self._count()
