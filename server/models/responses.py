from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from shared.models.content import Chunk, ContentItem, ContentType, ItemStatus, VisibilityLevel
from shared.models.identity import Credential, Scope
from shared.models.search import RankedChunk, TimelineEntry


class SearchResponse(BaseModel):
    query: str
    results: list[RankedChunk]
    total: int
    type_counts: dict[str, int]


class ContentItemResponse(BaseModel):
    id: str
    content_type: ContentType
    title: str | None
    owner_coach_id: str | None
    owner_client_id: str | None
    organization_id: str | None
    visibility_level: VisibilityLevel
    session_date: date | None
    metadata: dict[str, Any]
    status: ItemStatus
    chunk_count: int
    created_at: datetime
    raw_content: str | None = None

    @classmethod
    def from_item(cls, item: ContentItem, include_content: bool = False) -> "ContentItemResponse":
        data = item.model_dump(exclude={"raw_content", "created_by"})
        return cls(**data, raw_content=item.raw_content if include_content else None)


class ChunkResponse(BaseModel):
    id: str
    index: int
    text: str

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkResponse":
        return cls(id=chunk.id, index=chunk.index, text=chunk.text)


class ChunkListResponse(BaseModel):
    item_id: str
    chunks: list[ChunkResponse]
    total: int


class TimelineResponse(BaseModel):
    client_id: str
    items: list[TimelineEntry]
    total: int


class CredentialResponse(BaseModel):
    """A stored credential without its hash."""

    id: str
    name: str | None
    key_prefix: str
    coach_id: str | None
    client_id: str | None
    admin_id: str | None
    scopes: list[Scope]
    revoked: bool
    expires_at: datetime | None
    created_at: datetime
    last_used_at: datetime | None

    @classmethod
    def from_credential(cls, credential: Credential) -> "CredentialResponse":
        return cls(**credential.model_dump(exclude={"key_hash"}))


class IssuedCredentialResponse(BaseModel):
    token: str
    credential: CredentialResponse


class HealthResponse(BaseModel):
    status: str
    version: str
    content_store: str
    embed_engine: str
