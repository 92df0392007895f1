"""Unit tests for the retrieval layer — SemanticRetriever and the service facade."""

from __future__ import annotations

import pytest

from doc_retrieval.errors import DimensionMismatchError, InvalidInputError
from doc_retrieval.models import Document, ProcessingStatus
from doc_retrieval.service import RetrievalService
from tests.fakes import FakeEmbeddingClient

BUCKET = "uploads"


def _upload(service: RetrievalService, doc_id: str, key: str, text: str) -> None:
    service.document_store.add(Document(id=doc_id, key=key, owner="alice"))
    service.storage.upload(BUCKET, key, text.encode())
    outcome = service.process_upload(BUCKET, key)
    assert outcome.status is ProcessingStatus.COMPLETED


@pytest.fixture()
def populated(service: RetrievalService, fake_client: FakeEmbeddingClient) -> RetrievalService:
    fake_client.vectors.update(
        {
            "cats purr": [1.0, 0.0, 0.0],
            "dogs bark": [0.0, 1.0, 0.0],
            "fish swim": [0.0, 0.0, 1.0],
            "kittens": [0.9, 0.1, 0.0],
        }
    )
    _upload(service, "doc-cats", "documents/cats.txt", "cats purr")
    _upload(service, "doc-dogs", "documents/dogs.txt", "dogs bark")
    _upload(service, "doc-fish", "documents/fish.txt", "fish swim")
    service.generate_embeddings_for_all_chunks()
    return service


# ── SemanticRetriever.search ───────────────────────────────────────────


class TestSemanticRetriever:
    def test_search_ranks_by_similarity(self, populated: RetrievalService) -> None:
        results = populated.search("kittens", limit=2)

        assert [r.document_id for r in results] == ["doc-cats", "doc-dogs"]
        assert results[0].content == "cats purr"
        assert results[0].chunk_index == 0
        assert results[0].similarity > results[1].similarity

    def test_default_limit_comes_from_settings(self, populated: RetrievalService) -> None:
        populated.retriever.default_limit = 1
        assert len(populated.search("kittens")) == 1

    def test_limit_larger_than_index(self, populated: RetrievalService) -> None:
        assert len(populated.search("kittens", limit=50)) == 3

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_rejected(self, populated: RetrievalService, query: str) -> None:
        with pytest.raises(InvalidInputError):
            populated.search(query)

    def test_search_without_embeddings_returns_nothing(self, service: RetrievalService) -> None:
        assert service.search("anything") == []

    def test_search_by_embedding_skips_model(self, populated: RetrievalService, fake_client) -> None:
        calls_before = len(fake_client.calls)
        results = populated.retriever.search_by_embedding([0.0, 0.0, 1.0], 1)
        assert results[0].document_id == "doc-fish"
        assert len(fake_client.calls) == calls_before

    def test_search_by_embedding_wrong_length(self, populated: RetrievalService) -> None:
        with pytest.raises(DimensionMismatchError):
            populated.retriever.search_by_embedding([1.0, 0.0], 1)

    def test_search_sees_new_embeddings_after_generation(self, populated, fake_client) -> None:
        fake_client.vectors["birds sing"] = [0.0, 0.7, 0.7]
        _upload(populated, "doc-birds", "documents/birds.txt", "birds sing")

        assert all(r.document_id != "doc-birds" for r in populated.search("dogs bark", limit=5))
        populated.generate_embeddings_for_all_chunks()
        assert any(r.document_id == "doc-birds" for r in populated.search("dogs bark", limit=5))


# ── status ─────────────────────────────────────────────────────────────


class TestStatus:
    def test_status_on_empty_service(self, service: RetrievalService) -> None:
        status = service.status()
        assert status.total_chunks == 0
        assert status.total_embeddings == 0
        assert status.embedding_coverage == 0.0
        assert status.vector_index_loaded is False
        assert status.vector_index_size == 0
        assert status.model == "fake-embed-v1"
        assert status.dimension == 3

    def test_status_after_generation(self, populated: RetrievalService) -> None:
        status = populated.status()
        assert status.total_chunks == 3
        assert status.total_embeddings == 3
        assert status.embedding_coverage == 100.0
        assert status.vector_index_loaded is True
        assert status.vector_index_size == 3

    def test_partial_coverage_is_rounded(self, populated: RetrievalService) -> None:
        for i in range(3):
            _upload(populated, f"doc-extra-{i}", f"documents/extra-{i}.txt", f"extra {i}")
        assert populated.status().embedding_coverage == 50.0

        _upload(populated, "doc-extra-3", "documents/extra-3.txt", "extra 3")
        assert populated.status().embedding_coverage == 42.9

    def test_status_does_not_rebuild_index(self, service: RetrievalService, fake_client) -> None:
        service.document_store.add(Document(id="d", key="documents/d.txt"))
        service.storage.upload(BUCKET, "documents/d.txt", b"text")
        service.process_upload(BUCKET, "documents/d.txt")
        service.embeddings.generate_embeddings_for_all_chunks()
        service.index._snapshot = ()

        status = service.status()

        assert status.total_embeddings == 1
        assert status.vector_index_size == 0


def test_documents_flagged_end_to_end(populated: RetrievalService) -> None:
    assert all(d.embeddings_generated for d in populated.document_store.list_all())
