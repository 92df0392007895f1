"""Embedding model clients — single place to swap providers.

Supports two backends:

1. **Bedrock** (default) — Amazon Titan text embeddings through the
   ``bedrock-runtime`` API.
2. **HuggingFace** — a local sentence-transformer through
   ``langchain_huggingface``, handy for development without AWS access.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from doc_retrieval import aws
from doc_retrieval.config import Settings, settings as default_settings
from doc_retrieval.errors import ConfigurationError, InvalidInputError, ModelUnavailableError

logger = logging.getLogger(__name__)

_INVALID_INPUT_CODES = frozenset({"ValidationException"})


class EmbeddingClient(ABC):
    """Turns text into a fixed-length vector.

    Parameters
    ----------
    model_id:
        Identifier recorded on every stored embedding.
    dimension:
        Length of the vectors the model is expected to return.
    """

    def __init__(self, model_id: str, dimension: int) -> None:
        self.model_id = model_id
        self.dimension = dimension

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Return the embedding of *text*.

        Raises
        ------
        ModelUnavailableError
            The model could not be reached or returned an unusable response.
        InvalidInputError
            The model rejected *text*.
        """
        ...


class BedrockEmbeddingClient(EmbeddingClient):
    """Amazon Titan embeddings via ``bedrock-runtime`` ``InvokeModel``."""

    def __init__(
        self,
        model_id: str = default_settings.embedding_model,
        dimension: int = default_settings.embedding_dimension,
        *,
        bedrock_client: Any = None,
        settings: Settings = default_settings,
    ) -> None:
        super().__init__(model_id, dimension)
        self._client = bedrock_client if bedrock_client is not None else aws.client("bedrock-runtime", settings)

    def embed(self, text: str) -> list[float]:
        try:
            response = self._client.invoke_model(
                modelId=self.model_id,
                body=json.dumps({"inputText": text}),
                contentType="application/json",
                accept="application/json",
            )
            payload = json.loads(response["body"].read())
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _INVALID_INPUT_CODES:
                raise InvalidInputError(f"{self.model_id} rejected input: {exc}") from exc
            raise ModelUnavailableError(f"{self.model_id} invocation failed: {exc}") from exc
        except BotoCoreError as exc:
            raise ModelUnavailableError(f"{self.model_id} unreachable: {exc}") from exc
        except (KeyError, ValueError) as exc:
            raise ModelUnavailableError(f"{self.model_id} returned an unreadable response") from exc

        embedding = payload.get("embedding")
        if not isinstance(embedding, list):
            raise ModelUnavailableError(f"{self.model_id} response has no 'embedding' field")
        return [float(v) for v in embedding]


class HuggingFaceEmbeddingClient(EmbeddingClient):
    """Local sentence-transformer embeddings.

    ``langchain_huggingface`` is imported lazily so the Bedrock path does
    not need it installed.
    """

    def __init__(
        self,
        model_id: str = default_settings.huggingface_model,
        dimension: int = default_settings.huggingface_dimension,
        *,
        embedder: Any = None,
    ) -> None:
        super().__init__(model_id, dimension)
        if embedder is None:
            from langchain_huggingface import HuggingFaceEmbeddings

            embedder = HuggingFaceEmbeddings(model_name=model_id)
        self._embedder = embedder

    def embed(self, text: str) -> list[float]:
        try:
            return [float(v) for v in self._embedder.embed_query(text)]
        except Exception as exc:
            raise ModelUnavailableError(f"{self.model_id} failed to embed text: {exc}") from exc


def get_embedding_client(settings: Settings = default_settings) -> EmbeddingClient:
    """Return the embedding client selected by ``settings.embedding_backend``."""
    backend = settings.embedding_backend.lower()
    if backend == "bedrock":
        return BedrockEmbeddingClient(settings.embedding_model, settings.embedding_dimension, settings=settings)
    if backend == "huggingface":
        logger.info("Using local HuggingFace embeddings: %s", settings.huggingface_model)
        return HuggingFaceEmbeddingClient(settings.huggingface_model, settings.huggingface_dimension)
    raise ConfigurationError(f"Unknown EMBEDDING_BACKEND: {settings.embedding_backend!r}")
