"""End-to-end: ingest policy markdown, then answer a question from it.

Real chunker, embedding client, search, orchestrator and chat service; the
providers and stores are in-memory. The embedder hashes character bigrams
into a fixed-size count vector, so related Korean phrases score high.
"""

import hashlib
import itertools
import math
import uuid
from dataclasses import replace

from policy_rag.application.services import (
    ChatService,
    Chunker,
    EmbeddingClient,
    IngestionService,
    RagOrchestrator,
    RetryExecutor,
    VectorSearchService,
)
from policy_rag.domain.entities import (
    ChatCompletionResult,
    MessageRole,
    SearchResult,
    TokenUsage,
)

DIMENSIONS = 1536

FAQ_TABLE = """\
계약 | 공통 | 최소 계약 기간은? | 4주입니다
반려동물 | 공통 | 반려동물 동반이 가능한가요? | 불가합니다
"""


# ── Fakes ────────────────────────────────────────────────────────────


class BigramEmbeddingProvider:
    provider_name = "bigram"

    async def create_embeddings(self, texts, *, model, dimensions):
        return [self._embed(text, dimensions) for text in texts]

    @staticmethod
    def _embed(text: str, dimensions: int) -> list[float]:
        vector = [0.0] * dimensions
        for a, b in zip(text, text[1:]):
            bucket = int(hashlib.md5((a + b).encode("utf-8")).hexdigest(), 16) % dimensions
            vector[bucket] += 1.0
        return vector


class InMemoryChunkRepository:
    def __init__(self):
        self.chunks = []
        self._ids = itertools.count(1)

    async def delete_all(self):
        deleted, self.chunks = len(self.chunks), []
        return deleted

    async def insert_chunks(self, chunks):
        self.chunks.extend(replace(c, id=next(self._ids)) for c in chunks)

    async def match_chunks(self, query_embedding, *, match_count, category=None, max_priority=2):
        candidates = [
            c
            for c in self.chunks
            if c.priority <= max_priority and (category is None or c.category == category)
        ]
        scored = [
            SearchResult(
                id=c.id,
                content=c.content,
                source_file=c.source_file,
                category=c.category.value,
                section_title=c.section_title,
                priority=c.priority,
                content_type=c.content_type.value,
                similarity=_cosine(query_embedding, c.embedding),
            )
            for c in candidates
        ]
        scored.sort(key=lambda r: r.similarity, reverse=True)
        return scored[:match_count]


class InMemoryChatRepository:
    def __init__(self):
        self.sessions = {}
        self.messages = []
        self._ids = itertools.count(1)

    async def create_session(self, session):
        stored = replace(session, id=str(uuid.uuid4()))
        self.sessions[stored.id] = stored
        return stored

    async def get_session(self, session_id, *, owner_id):
        session = self.sessions.get(session_id)
        return session if session and session.owner_id == owner_id else None

    async def update_session(self, session_id, *, updated_at, title=None):
        self.sessions[session_id].updated_at = updated_at
        if title is not None:
            self.sessions[session_id].title = title

    async def add_message(self, message):
        stored = replace(message, id=next(self._ids))
        self.messages.append(stored)
        return stored

    async def get_messages(self, session_id):
        return [m for m in self.messages if m.session_id == session_id]

    async def get_recent_messages(self, session_id, *, limit):
        return (await self.get_messages(session_id))[-limit:]

    async def count_messages(self, session_id):
        return len(await self.get_messages(session_id))


class EchoChatProvider:
    """Answers with a fixed text and records the prompt it was given."""

    provider_name = "echo"

    def __init__(self, answer: str):
        self._answer = answer
        self.prompts = []

    async def complete(self, messages, model, *, temperature=None, max_tokens=None):
        self.prompts.append(messages)
        return ChatCompletionResult(
            model=model,
            content=self._answer,
            finish_reason="stop",
            usage=TokenUsage(total_tokens=1),
        )


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


# ── Test ──


async def test_ingested_faq_answers_question_with_single_source(tmp_path):
    (tmp_path / "FAQ.md").write_text(FAQ_TABLE, encoding="utf-8")

    embedding_client = EmbeddingClient(
        BigramEmbeddingProvider(),
        RetryExecutor(),
        model="bigram",
        dimensions=DIMENSIONS,
        batch_size=16,
    )
    chunk_repo = InMemoryChunkRepository()
    report = await IngestionService(Chunker(), embedding_client, chunk_repo).ingest_directory(tmp_path)
    assert report.total_chunks == 2

    answer = "최소 계약 기간은 4주입니다.\n📄 출처: FAQ.md > 계약"
    provider = EchoChatProvider(answer)
    chat_repo = InMemoryChatRepository()
    orchestrator = RagOrchestrator(
        VectorSearchService(embedding_client, chunk_repo),
        chat_repo,
        provider,
        model="echo",
    )
    service = ChatService(chat_repo, orchestrator)

    session = await service.create_session("user-a")
    result = await service.send_message("user-a", session.id, "최소 계약 기간이 궁금해요")

    assert result.success is True
    assert result.message.content == answer
    assert len(result.message.sources) == 1
    assert result.message.sources[0].source_file == "FAQ.md"
    assert result.message.sources[0].section_title == "계약"
    assert 0.3 <= result.message.sources[0].similarity <= 1.0

    user_turn = provider.prompts[0][-1]
    assert user_turn.role == "user"
    assert "[참조 문서]" in user_turn.content
    assert "출처: FAQ.md > 계약" in user_turn.content
    assert "반려동물" not in user_turn.content

    stored = await service.get_messages("user-a", session.id)
    assert [m.role for m in stored] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert chat_repo.sessions[session.id].title == "최소 계약 기간이 궁금해요"


async def test_reingesting_replaces_the_corpus(tmp_path):
    (tmp_path / "FAQ.md").write_text(FAQ_TABLE, encoding="utf-8")
    embedding_client = EmbeddingClient(
        BigramEmbeddingProvider(),
        RetryExecutor(),
        model="bigram",
        dimensions=DIMENSIONS,
        batch_size=16,
    )
    chunk_repo = InMemoryChunkRepository()
    service = IngestionService(Chunker(), embedding_client, chunk_repo)

    await service.ingest_directory(tmp_path)
    report = await service.ingest_directory(tmp_path)

    assert report.deleted == 2
    assert len(chunk_repo.chunks) == 2
