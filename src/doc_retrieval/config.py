"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

from doc_retrieval.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # AWS
    aws_region: str = "us-east-1"
    aws_connect_timeout: float = Field(default=5.0, description="Seconds before an AWS connect attempt fails")
    aws_read_timeout: float = Field(default=60.0, description="Seconds before an AWS read fails")

    # Record stores (DynamoDB table names)
    document_table: str = ""
    document_chunk_table: str = ""
    embeddings_table: str = ""

    # Upload notifications
    documents_prefix: str = Field(
        default="documents/",
        description="Only object keys under this prefix are processed. Empty disables the filter.",
    )

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Embedding
    embedding_backend: str = Field(default="bedrock", description="'bedrock' or 'huggingface'")
    embedding_model: str = "amazon.titan-embed-text-v1"
    embedding_dimension: int = 1536
    validate_embedding_dimension: bool = True
    huggingface_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    huggingface_dimension: int = Field(default=384, description="Vector length of HUGGINGFACE_MODEL")
    embedding_batch_size: int = 10
    content_preview_length: int = 500

    # Search
    max_search_results: int = 5

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def require(self, *names: str) -> None:
        """Raise :class:`ConfigurationError` unless every named setting is non-empty."""
        missing = [name.upper() for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for a process entry point."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Singleton: import `settings` wherever needed.
settings = Settings()
