"""Pydantic v2 schemas (DTOs) for vector search over policy chunks."""

from typing import Literal

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request schema for the search endpoint.

    Range checks are left to the search service so that every entry point
    reports them the same way.
    """

    query: str = Field(..., min_length=1, examples=["최소 계약 기간은?"])
    category: Literal["faq", "policy", "operation", "reference"] | None = None
    top_k: int = Field(default=5, description="Maximum number of results")
    min_similarity: float = Field(default=0.3, description="Similarity floor (0–1)")
    max_priority: int = Field(default=2, description="Only chunks with priority <= this")


class SearchResultResponse(BaseModel):
    id: int
    content: str
    source_file: str
    category: str
    section_title: str
    priority: int
    content_type: str
    similarity: float

    model_config = {"from_attributes": True}


class SearchResponse(BaseModel):
    query: str
    category: str | None
    results: list[SearchResultResponse]
