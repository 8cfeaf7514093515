"""Search router: natural language search over the caller's readable content."""

from fastapi import APIRouter, Depends, Request

from server.api.dependencies.auth import get_principal
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse
from services.retrieval.RetrievalService import count_by_type
from shared.models.identity import Principal

search_router = APIRouter(prefix="/api/v2", tags=["Search"])


@search_router.post("/search", response_model=SearchResponse)
async def handle_search(request: Request, body: SearchRequest, principal: Principal = Depends(get_principal)) -> SearchResponse:
    """Embed the query text and return the best matching chunks.

    Access rules are applied by the retrieval service before scoring; the
    router only translates the request.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        body (SearchRequest): Query text, optional filters, threshold and limit.
        principal (Principal): The authenticated caller.

    Returns:
        SearchResponse: Ranked results with per-type counts.
    """
    request.app.state.logging.info(
        "Search by %s '%s' (limit=%s).", principal.role.value, principal.identity.id, body.limit
    )
    results = await request.app.state.retrieval_service.search_text(
        principal,
        body.query,
        filters=body.filters,
        threshold=body.threshold,
        limit=body.limit,
    )
    return SearchResponse(query=body.query, results=results, total=len(results), type_counts=count_by_type(results))
