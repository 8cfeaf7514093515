"""Client router: chronological history of a client."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from server.api.dependencies.auth import get_principal
from server.models.responses import TimelineResponse
from services.ingestion.ContentTypeProfiles import parse_content_type
from shared.models.identity import Principal

client_router = APIRouter(prefix="/api/v2/clients", tags=["Clients"])


@client_router.get("/{client_id}/timeline", response_model=TimelineResponse)
async def get_timeline(
    request: Request,
    client_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    types: str | None = Query(default=None, description="Comma separated content types"),
    limit: int = 50,
    principal: Principal = Depends(get_principal),
) -> TimelineResponse:
    """Return the client's readable items, newest session first.

    Args:
        client_id (str): The client whose history is requested.
        start_date (date | None): Inclusive lower session date bound.
        end_date (date | None): Inclusive upper session date bound.
        types (str | None): e.g. "transcript,assessment".
        limit (int): Max items, clamped to TIMELINE_MAX_LIMIT.
    """
    content_types = [parse_content_type(t) for t in types.split(",") if t.strip()] if types else None
    entries = await request.app.state.retrieval_service.timeline(
        principal,
        client_id,
        start=start_date,
        end=end_date,
        content_types=content_types,
        limit=limit,
    )
    return TimelineResponse(client_id=client_id, items=entries, total=len(entries))
