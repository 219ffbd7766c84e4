"""Unit tests for the VectorSearchService."""

import pytest

from policy_rag.application.services.vector_search_service import VectorSearchService
from policy_rag.domain.entities import SearchOptions, SearchResult
from policy_rag.domain.exceptions import (
    IndexQueryError,
    TerminalProviderError,
    ValidationError,
)


# ── Fakes ────────────────────────────────────────────────────────────


class FakeEmbeddingClient:
    def __init__(self, error: Exception | None = None):
        self._error = error
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self._error:
            raise self._error
        return [0.1, 0.2, 0.3]


class FakeChunkRepository:
    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None):
        self._results = results or []
        self._error = error
        self.last_kwargs: dict | None = None

    async def match_chunks(self, query_embedding, *, match_count, category=None, max_priority=2):
        self.last_kwargs = {
            "query_embedding": query_embedding,
            "match_count": match_count,
            "category": category,
            "max_priority": max_priority,
        }
        if self._error:
            raise self._error
        return self._results[:match_count]


def _result(id: int, similarity: float, category: str = "faq") -> SearchResult:
    return SearchResult(
        id=id,
        content=f"chunk {id}",
        source_file="FAQ.md",
        category=category,
        section_title="계약",
        priority=0,
        content_type="qa_pair",
        similarity=similarity,
    )


# ── Tests ──


async def test_search_drops_results_below_floor_and_keeps_order():
    repo = FakeChunkRepository([_result(1, 0.82), _result(2, 0.30), _result(3, 0.29)])
    service = VectorSearchService(FakeEmbeddingClient(), repo)

    results = await service.search("최소 계약 기간", SearchOptions(min_similarity=0.3))

    assert [r.id for r in results] == [1, 2]


async def test_search_passes_filters_to_index():
    embedder = FakeEmbeddingClient()
    repo = FakeChunkRepository()
    service = VectorSearchService(embedder, repo)

    await service.search("수수료", SearchOptions(category="policy", top_k=3, max_priority=1))

    assert embedder.calls == ["수수료"]
    assert repo.last_kwargs == {
        "query_embedding": [0.1, 0.2, 0.3],
        "match_count": 3,
        "category": "policy",
        "max_priority": 1,
    }


async def test_search_uses_defaults_without_options():
    repo = FakeChunkRepository()
    await VectorSearchService(FakeEmbeddingClient(), repo).search("질문")

    assert repo.last_kwargs["match_count"] == 5
    assert repo.last_kwargs["category"] is None
    assert repo.last_kwargs["max_priority"] == 2


async def test_index_failure_returns_empty_list(caplog):
    repo = FakeChunkRepository(error=IndexQueryError("connection refused"))
    service = VectorSearchService(FakeEmbeddingClient(), repo)

    assert await service.search("질문") == []
    assert "Vector search failed" in caplog.text


async def test_embedding_failure_propagates():
    embedder = FakeEmbeddingClient(error=TerminalProviderError("fake", 401, "invalid api key"))
    service = VectorSearchService(embedder, FakeChunkRepository())

    with pytest.raises(TerminalProviderError):
        await service.search("질문")


@pytest.mark.parametrize(
    "options",
    [
        SearchOptions(top_k=0),
        SearchOptions(min_similarity=1.5),
        SearchOptions(min_similarity=-0.1),
        SearchOptions(max_priority=-1),
    ],
)
async def test_invalid_options_raise_before_embedding(options):
    embedder = FakeEmbeddingClient()
    service = VectorSearchService(embedder, FakeChunkRepository())

    with pytest.raises(ValidationError):
        await service.search("질문", options)

    assert embedder.calls == []
