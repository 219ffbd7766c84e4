"""Unit tests for the EmbeddingClient — normalization, batching, retry, validation."""

import pytest

from policy_rag.application.services.embedding_client import EmbeddingClient, normalize_text
from policy_rag.application.services.retry_executor import RetryExecutor, RetryOptions
from policy_rag.domain.exceptions import TerminalProviderError, TransientProviderError


# ── Fakes ────────────────────────────────────────────────────────────


class FakeEmbeddingProvider:
    """Returns ``[len(text), 0, 0]`` per input; can fail on scripted calls."""

    provider_name = "fake"

    def __init__(self, failures: list[Exception] | None = None, dims: int = 3):
        self._failures = list(failures or [])
        self._dims = dims
        self.calls: list[list[str]] = []

    async def create_embeddings(self, texts, *, model, dimensions):
        self.calls.append(list(texts))
        if self._failures:
            raise self._failures.pop(0)
        return [[float(len(t))] + [0.0] * (self._dims - 1) for t in texts]


class NoSleep:
    async def __call__(self, seconds: float) -> None:
        return None


def _client(provider, *, batch_size: int = 2048, dimensions: int = 3) -> EmbeddingClient:
    return EmbeddingClient(
        provider,
        RetryExecutor(RetryOptions(max_retries=3), sleep=NoSleep()),
        model="openai/text-embedding-3-small",
        dimensions=dimensions,
        batch_size=batch_size,
    )


# ── Tests ──


def test_normalize_text_replaces_newlines_and_trims():
    assert normalize_text("  첫 줄\n둘째 줄\n") == "첫 줄 둘째 줄"


async def test_embed_normalizes_before_calling_provider():
    provider = FakeEmbeddingProvider()

    vector = await _client(provider).embed(" Q: 질문\nA: 답변 ")

    assert provider.calls == [["Q: 질문 A: 답변"]]
    assert vector == [11.0, 0.0, 0.0]


async def test_embed_batch_splits_into_sub_batches_in_order():
    provider = FakeEmbeddingProvider()
    texts = ["a", "bb", "ccc", "dddd", "eeeee"]

    vectors = await _client(provider, batch_size=2).embed_batch(texts)

    assert [len(call) for call in provider.calls] == [2, 2, 1]
    assert [v[0] for v in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]


async def test_embed_batch_empty_input_makes_no_call():
    provider = FakeEmbeddingProvider()

    assert await _client(provider).embed_batch([]) == []
    assert provider.calls == []


async def test_rate_limited_sub_batch_is_retried():
    provider = FakeEmbeddingProvider(
        failures=[TransientProviderError("fake", 429, "Rate limit exceeded")]
    )

    vectors = await _client(provider).embed_batch(["a", "bb"])

    assert len(provider.calls) == 2
    assert [v[0] for v in vectors] == [1.0, 2.0]


async def test_terminal_error_fails_whole_batch_without_retry():
    provider = FakeEmbeddingProvider(
        failures=[TerminalProviderError("fake", 401, "invalid api key")]
    )

    with pytest.raises(TerminalProviderError):
        await _client(provider, batch_size=1).embed_batch(["a", "b"])

    assert len(provider.calls) == 1


async def test_wrong_dimensionality_is_rejected():
    provider = FakeEmbeddingProvider(dims=2)

    with pytest.raises(TerminalProviderError, match="3-dimensional"):
        await _client(provider, dimensions=3).embed("질문")


async def test_wrong_vector_count_is_rejected():
    class ShortProvider(FakeEmbeddingProvider):
        async def create_embeddings(self, texts, *, model, dimensions):
            vectors = await super().create_embeddings(texts, model=model, dimensions=dimensions)
            return vectors[:-1]

    with pytest.raises(TerminalProviderError, match="expected 2 embeddings"):
        await _client(ShortProvider()).embed_batch(["a", "b"])
