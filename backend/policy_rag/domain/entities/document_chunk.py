"""Domain entities for policy document chunks — before and after embedding."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ChunkCategory(str, Enum):
    """Source document category, used as a server-side search filter."""

    FAQ = "faq"
    POLICY = "policy"
    OPERATION = "operation"
    REFERENCE = "reference"


class ChunkTarget(str, Enum):
    """Intended audience of a chunk."""

    COMMON = "common"
    HOST = "host"
    GUEST = "guest"


class ChunkContentType(str, Enum):
    """Shape of the chunk content."""

    QA_PAIR = "qa_pair"
    POLICY_RULE = "policy_rule"
    REFERENCE = "reference"


@dataclass(frozen=True)
class FileCategory:
    """Catalog entry declaring how chunks of one source file are tagged."""

    category: ChunkCategory
    priority: int  # lower = more authoritative, 0 is highest
    target: ChunkTarget = ChunkTarget.COMMON


@dataclass
class DocumentChunk:
    """A retrieval unit produced by the chunker, not yet embedded."""

    content: str
    source_file: str
    category: ChunkCategory
    target: ChunkTarget
    section_title: str
    priority: int
    content_type: ChunkContentType


@dataclass
class StoredChunk:
    """A chunk persisted in the similarity index together with its embedding."""

    content: str
    source_file: str
    category: ChunkCategory
    target: ChunkTarget
    section_title: str
    priority: int
    content_type: ChunkContentType
    embedding: list[float] = field(default_factory=list)
    token_count: int = 0
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk, embedding: list[float]) -> "StoredChunk":
        """Attach an embedding to a chunk; token count is a rough 3-chars-per-token estimate."""
        return cls(
            content=chunk.content,
            source_file=chunk.source_file,
            category=chunk.category,
            target=chunk.target,
            section_title=chunk.section_title,
            priority=chunk.priority,
            content_type=chunk.content_type,
            embedding=embedding,
            token_count=math.ceil(len(chunk.content) / 3),
        )
