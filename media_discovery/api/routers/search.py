"""
Search API router.
Implements POST /v1/search with a time budget and trace ids.
"""
import asyncio
import logging

from fastapi import APIRouter, Depends

from media_discovery.api.dependencies import get_search_service
from media_discovery.config import get_settings
from media_discovery.core.exceptions import SearchTimeoutError
from media_discovery.core.telemetry import current_trace_id, record_outcome, search_span
from media_discovery.models.schemas import SearchRequest, SearchResponse, SearchResultItem
from media_discovery.services.search import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Natural-Language Search",
    description="""
    Turn a free-text query into a ranked, explained list of movies and shows.

    Examples:
    - "feel-good movies like Forrest Gump from the 90s"
    - "top 5 mind-bending sci-fi films under 2 hours"
    - "Inception" (exact title lookup, single result)

    **Behaviour:**
    - An exact title lookup returns one result with relevanceScore 1.0
    - Otherwise results are capped at the count named in the query,
      else `limit`, else 12
    - Failing catalog calls narrow the result instead of failing the request
    """,
    responses={
        200: {"description": "Ranked results (possibly empty)"},
        400: {"description": "Empty or oversized query"},
        504: {"description": "Search exceeded its time budget"},
    },
)
async def search(
    request: SearchRequest,
    search_service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Search endpoint."""
    settings = get_settings()

    with search_span(request.query) as span:
        trace_id = current_trace_id()
        try:
            outcome = await asyncio.wait_for(
                search_service.search(request.query, requested_count_hint=request.limit),
                timeout=settings.SEARCH_TIMEOUT_SEC,
            )
        except asyncio.TimeoutError:
            span.set_attribute("search.timed_out", True)
            logger.warning(
                f"Search timed out after {settings.SEARCH_TIMEOUT_SEC}s",
                extra={"trace_id": trace_id, "query": request.query[:60]},
            )
            raise SearchTimeoutError(settings.SEARCH_TIMEOUT_SEC)
        record_outcome(span, outcome)

    return SearchResponse(
        results=[
            SearchResultItem.from_ranked(result, settings.TMDB_IMAGE_BASE_URL)
            for result in outcome.results
        ],
        trace_id=trace_id,
    )
