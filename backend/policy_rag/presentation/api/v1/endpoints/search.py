"""Vector search endpoint — similarity search over the policy chunks."""

from fastapi import APIRouter, Depends, HTTPException, status

from policy_rag.application.schemas import SearchRequest, SearchResponse, SearchResultResponse
from policy_rag.application.services import VectorSearchService
from policy_rag.domain.entities import SearchOptions
from policy_rag.domain.exceptions import ProviderError, ValidationError
from policy_rag.infrastructure.dependencies import get_search_service

router = APIRouter(prefix="/search", tags=["Search"])


@router.post("", response_model=SearchResponse)
async def search_policies(
    request: SearchRequest,
    service: VectorSearchService = Depends(get_search_service),
) -> SearchResponse:
    """Return the policy chunks most similar to the query."""
    try:
        results = await service.search(
            request.query,
            SearchOptions(
                category=request.category,
                top_k=request.top_k,
                min_similarity=request.min_similarity,
                max_priority=request.max_priority,
            ),
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except ProviderError as e:
        raise HTTPException(
            status_code=e.status_code if 400 <= e.status_code < 600 else 502,
            detail=f"[{e.provider}] {e.message}",
        )

    return SearchResponse(
        query=request.query,
        category=request.category,
        results=[SearchResultResponse.model_validate(r, from_attributes=True) for r in results],
    )
