"""Unit tests for the IngestionService — full-replace corpus rebuild."""

import pytest

from policy_rag.application.services.chunker import Chunker
from policy_rag.application.services.ingestion_service import IngestionService
from policy_rag.domain.entities import ChunkCategory
from policy_rag.domain.exceptions import TerminalProviderError, ValidationError


# ── Fakes ────────────────────────────────────────────────────────────


class FakeEmbeddingClient:
    def __init__(self, error: Exception | None = None):
        self._error = error
        self.calls: list[list[str]] = []

    async def embed_batch(self, texts):
        self.calls.append(list(texts))
        if self._error:
            raise self._error
        return [[float(i), 0.0, 0.0] for i in range(len(texts))]


class FakeChunkRepository:
    def __init__(self, existing: int = 0):
        self.existing = existing
        self.delete_calls = 0
        self.insert_batches: list[list] = []

    async def delete_all(self):
        self.delete_calls += 1
        deleted, self.existing = self.existing, 0
        return deleted

    async def insert_chunks(self, chunks):
        self.insert_batches.append(list(chunks))

    @property
    def stored(self):
        return [c for batch in self.insert_batches for c in batch]


FAQ_TABLE = """\
계약 | 공통 | 최소 계약 기간은? | 4주입니다
정산 | 호스트 | 정산일은 언제인가요? | 퇴실 후 익일입니다
"""

PRICING = """\
# 가격정책
## 수수료
호스트 수수료는 3%입니다.
"""


def _write(directory, name: str, text: str) -> None:
    (directory / name).write_text(text, encoding="utf-8")


def _service(embedder=None, repo=None) -> IngestionService:
    return IngestionService(Chunker(), embedder or FakeEmbeddingClient(), repo or FakeChunkRepository())


# ── Tests ──


async def test_ingest_directory_reports_counts(tmp_path):
    _write(tmp_path, "FAQ.md", FAQ_TABLE)
    _write(tmp_path, "정책-2_가격정책.md", PRICING)
    _write(tmp_path, "notes.txt", "ignored")
    repo = FakeChunkRepository(existing=12)

    report = await _service(repo=repo).ingest_directory(tmp_path)

    assert report.files == 2
    assert report.chunks_per_file == {"FAQ.md": 2, "정책-2_가격정책.md": 1}
    assert report.total_chunks == 3
    assert report.chunks_per_category == {"faq": 2, "policy": 1}
    assert report.deleted == 12
    assert repo.delete_calls == 1
    assert len(repo.stored) == 3


async def test_stored_chunks_carry_metadata_embedding_and_token_count(tmp_path):
    _write(tmp_path, "FAQ.md", FAQ_TABLE)
    repo = FakeChunkRepository()

    await _service(repo=repo).ingest_directory(tmp_path)

    first = repo.stored[0]
    assert first.content == "Q: 최소 계약 기간은?\nA: 4주입니다"
    assert first.category == ChunkCategory.FAQ
    assert first.section_title == "계약"
    assert first.embedding == [0.0, 0.0, 0.0]
    assert first.token_count == -(-len(first.content) // 3)
    assert repo.stored[1].embedding == [1.0, 0.0, 0.0]


async def test_files_are_processed_in_sorted_order(tmp_path):
    _write(tmp_path, "b.md", "# B\nbbb")
    _write(tmp_path, "a.md", "# A\naaa")
    embedder = FakeEmbeddingClient()

    await _service(embedder=embedder).ingest_directory(tmp_path)

    assert embedder.calls == [["aaa", "bbb"]]


async def test_large_corpus_is_inserted_in_batches_of_100():
    rows = "\n".join(f"섹션 | 공통 | 질문 {i}? | 답변 {i}" for i in range(150))
    repo = FakeChunkRepository()

    report = await _service(repo=repo).ingest_documents([("FAQ.md", rows)])

    assert report.total_chunks == 150
    assert [len(batch) for batch in repo.insert_batches] == [100, 50]


async def test_empty_directory_leaves_corpus_untouched(tmp_path):
    repo = FakeChunkRepository(existing=5)
    embedder = FakeEmbeddingClient()

    report = await _service(embedder=embedder, repo=repo).ingest_directory(tmp_path)

    assert report.total_chunks == 0
    assert repo.delete_calls == 0
    assert embedder.calls == []


async def test_missing_directory_raises_validation_error(tmp_path):
    with pytest.raises(ValidationError):
        await _service().ingest_directory(tmp_path / "missing")


async def test_embedding_failure_deletes_nothing(tmp_path):
    _write(tmp_path, "FAQ.md", FAQ_TABLE)
    repo = FakeChunkRepository(existing=7)
    embedder = FakeEmbeddingClient(error=TerminalProviderError("openrouter", 401, "invalid api key"))

    with pytest.raises(TerminalProviderError):
        await _service(embedder=embedder, repo=repo).ingest_directory(tmp_path)

    assert repo.delete_calls == 0
    assert repo.insert_batches == []
