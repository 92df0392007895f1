"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from doc_retrieval.config import Settings
from doc_retrieval.models import Document
from doc_retrieval.service import RetrievalService, build_in_memory_service
from tests.fakes import FakeEmbeddingClient


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        embedding_dimension=3,
        embedding_batch_size=2,
        chunk_size=1000,
        chunk_overlap=200,
        documents_prefix="documents/",
        max_search_results=5,
        document_table="",
        document_chunk_table="",
        embeddings_table="",
    )


@pytest.fixture()
def fake_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture()
def service(fake_client: FakeEmbeddingClient, test_settings: Settings) -> RetrievalService:
    return build_in_memory_service(fake_client, test_settings)


@pytest.fixture()
def pending_document() -> Document:
    return Document(id="doc-1", key="documents/hello.txt", name="hello.txt", owner="alice")
