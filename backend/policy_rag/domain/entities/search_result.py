"""Domain entities for vector similarity search."""

from dataclasses import dataclass


@dataclass
class SearchResult:
    """A stored chunk returned by a similarity query. Never persisted."""

    id: int
    content: str
    source_file: str
    category: str
    section_title: str
    priority: int
    content_type: str
    similarity: float  # 0.0 – 1.0 (cosine similarity)


@dataclass
class SearchOptions:
    """Filters and limits for a vector search."""

    category: str | None = None
    top_k: int = 5
    min_similarity: float = 0.3
    max_priority: int = 2  # keep chunks with priority <= max_priority
