"""Ingestion service — rebuilds the policy chunk index from markdown files.

Flow:
  1. Read every ``*.md`` file of the policy directory (sorted, UTF-8)
  2. Chunk each document
  3. Embed all chunk contents
  4. Replace the stored corpus: delete everything, insert the new chunks

The replacement runs in the caller's unit of work; the caller commits.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from policy_rag.application.interfaces.chunk_repository import ChunkRepository
from policy_rag.application.services.chunker import Chunker
from policy_rag.application.services.embedding_client import EmbeddingClient
from policy_rag.domain.entities import DocumentChunk, StoredChunk
from policy_rag.domain.exceptions import ValidationError
from policy_rag.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

plog = PipelineLogger("IngestionPipeline")

_INSERT_BATCH_SIZE = 100


@dataclass
class IngestionReport:
    files: int = 0
    chunks_per_file: dict[str, int] = field(default_factory=dict)
    total_chunks: int = 0
    chunks_per_category: dict[str, int] = field(default_factory=dict)
    deleted: int = 0


class IngestionService:
    """Application service for full-replace ingestion of policy documents."""

    def __init__(
        self,
        chunker: Chunker,
        embedding_client: EmbeddingClient,
        chunk_repository: ChunkRepository,
    ):
        self._chunker = chunker
        self._embedding_client = embedding_client
        self._chunk_repo = chunk_repository

    async def ingest_directory(self, path: str | Path) -> IngestionReport:
        """Ingest every markdown file directly inside ``path``.

        Raises:
            ValidationError: If ``path`` is not an existing directory.
        """
        directory = Path(path)
        if not directory.is_dir():
            raise ValidationError(f"policy directory not found: {directory}")

        plog.separator("Policy ingestion")
        with plog.timed_step(PipelineStage.SCAN, f"Reading {directory}"):
            documents = [
                (file.name, file.read_text(encoding="utf-8"))
                for file in sorted(directory.glob("*.md"))
                if file.is_file()
            ]
            plog.detail(f"{len(documents)} markdown file(s)")

        return await self.ingest_documents(documents)

    async def ingest_documents(self, documents: list[tuple[str, str]]) -> IngestionReport:
        """Chunk, embed and store ``(name, text)`` documents, replacing the corpus."""
        start = time.monotonic()
        report = IngestionReport(files=len(documents))

        chunks: list[DocumentChunk] = []
        with plog.timed_step(PipelineStage.CHUNK, f"Chunking {len(documents)} document(s)"):
            for name, text in documents:
                doc_chunks = self._chunker.chunk(text, name)
                report.chunks_per_file[name] = len(doc_chunks)
                chunks.extend(doc_chunks)
                plog.detail(name, chunks=len(doc_chunks))

        report.total_chunks = len(chunks)
        if not chunks:
            plog.warning("No chunks produced — stored corpus left untouched")
            return report

        with plog.timed_step(PipelineStage.EMBED, f"Embedding {len(chunks)} chunk(s)"):
            vectors = await self._embedding_client.embed_batch([c.content for c in chunks])

        stored = [
            StoredChunk.from_chunk(chunk, vector)
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]

        with plog.timed_step(PipelineStage.REPLACE, "Replacing stored corpus"):
            report.deleted = await self._chunk_repo.delete_all()
            plog.detail("Deleted previous chunks", count=report.deleted)
            for offset in range(0, len(stored), _INSERT_BATCH_SIZE):
                batch = stored[offset : offset + _INSERT_BATCH_SIZE]
                await self._chunk_repo.insert_chunks(batch)
                plog.detail(f"{offset + len(batch)}/{len(stored)} stored")

        report.chunks_per_category = dict(
            Counter(c.category.value for c in chunks)
        )
        plog.step_complete(
            PipelineStage.COMPLETE,
            f"Ingested {report.files} file(s), {report.total_chunks} chunk(s)",
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        plog.stats(**report.chunks_per_category)
        return report
