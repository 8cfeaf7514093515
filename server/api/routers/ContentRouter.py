"""Content router: ingest, fetch and delete content items."""

from fastapi import APIRouter, Depends, Request, Response

from server.api.dependencies.auth import get_principal
from server.models.requests import ContentCreateRequest
from server.models.responses import ChunkListResponse, ChunkResponse, ContentItemResponse
from shared.models.identity import Principal

content_router = APIRouter(prefix="/api/v2/content", tags=["Content"])


@content_router.post("", response_model=ContentItemResponse, status_code=201)
async def create_content(request: Request, body: ContentCreateRequest, principal: Principal = Depends(get_principal)) -> ContentItemResponse:
    """Chunk, embed and store a new content item. Returns once the item is complete."""
    item = await request.app.state.ingestion_service.ingest(principal, body.content, body.to_meta())
    return ContentItemResponse.from_item(item)


@content_router.get("/{item_id}", response_model=ContentItemResponse)
async def get_content(request: Request, item_id: str, principal: Principal = Depends(get_principal)) -> ContentItemResponse:
    item = await request.app.state.retrieval_service.get_item(principal, item_id)
    return ContentItemResponse.from_item(item, include_content=True)


@content_router.get("/{item_id}/chunks", response_model=ChunkListResponse)
async def get_content_chunks(request: Request, item_id: str, principal: Principal = Depends(get_principal)) -> ChunkListResponse:
    chunks = await request.app.state.retrieval_service.get_item_chunks(principal, item_id)
    return ChunkListResponse(
        item_id=item_id,
        chunks=[ChunkResponse.from_chunk(chunk) for chunk in chunks],
        total=len(chunks),
    )


@content_router.delete("/{item_id}", status_code=204)
async def delete_content(request: Request, item_id: str, principal: Principal = Depends(get_principal)) -> Response:
    await request.app.state.ingestion_service.delete(principal, item_id)
    return Response(status_code=204)
