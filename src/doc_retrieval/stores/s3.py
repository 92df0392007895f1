"""S3 object storage."""

from __future__ import annotations

import logging
from typing import Any

from doc_retrieval import aws
from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.stores.base import ObjectStorage

logger = logging.getLogger(__name__)


class S3ObjectStorage(ObjectStorage):
    """Downloads uploaded documents from S3."""

    def __init__(self, s3_client: Any = None, *, settings: Settings = default_settings) -> None:
        self._client = s3_client if s3_client is not None else aws.client("s3", settings)

    def fetch(self, bucket: str, key: str) -> bytes:
        response = self._client.get_object(Bucket=bucket, Key=key)
        body = response.get("Body")
        if body is None:
            raise ValueError(f"No body in S3 response for s3://{bucket}/{key}")
        data = body.read()
        logger.info("Downloaded %d bytes from s3://%s/%s", len(data), bucket, key)
        return data
