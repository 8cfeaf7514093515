"""Pydantic models for stored coaching content.

Hierarchy:
  ContentItemMeta : caller-supplied metadata for a new upload.
  ContentItem     : one uploaded document / session, owner of its chunks.
  ChunkMetadata   : denormalised item fields copied onto every chunk.
  Chunk           : a retrievable text window with its embedding vector.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    TRANSCRIPT = "transcript"
    ASSESSMENT = "assessment"
    COACH_ASSESSMENT = "coach_assessment"
    COACHING_MODEL = "coaching_model"
    COMPANY_DOC = "company_doc"
    BLOG_POST = "blog_post"
    QUESTIONNAIRE = "questionnaire"


class VisibilityLevel(str, Enum):
    PRIVATE = "private"
    COACH_ONLY = "coach_only"
    ORG_VISIBLE = "org_visible"
    PUBLIC = "public"


class ItemStatus(str, Enum):
    PENDING = "pending_chunks"
    COMPLETE = "complete"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentItemMeta(BaseModel):
    """Metadata supplied alongside raw content when ingesting.

    content_type is kept as a plain string so that unknown types surface as a
    ValidationError from the ingestion pipeline rather than a parse error.
    """

    content_type: str
    title: str | None = None
    owner_coach_id: str | None = None
    owner_client_id: str | None = None
    organization_id: str | None = None
    visibility_level: VisibilityLevel | None = None
    session_date: date | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ContentItem(BaseModel):
    """One uploaded document or coaching session.

    At least one of owner_coach_id / owner_client_id is set, unless the item is
    an organisation-level document (no owners, organization_id set).
    """

    id: str
    content_type: ContentType
    title: str | None = None
    owner_coach_id: str | None = None
    owner_client_id: str | None = None
    organization_id: str | None = None
    visibility_level: VisibilityLevel
    raw_content: str
    session_date: date | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: ItemStatus = ItemStatus.PENDING
    chunk_count: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    created_by: str | None = None

    def is_complete(self) -> bool:
        return self.status == ItemStatus.COMPLETE

    def to_chunk_metadata(self) -> "ChunkMetadata":
        """Copy the filterable fields onto a chunk."""
        return ChunkMetadata(
            content_type=self.content_type,
            title=self.title,
            owner_coach_id=self.owner_coach_id,
            owner_client_id=self.owner_client_id,
            organization_id=self.organization_id,
            visibility_level=self.visibility_level,
            session_date=self.session_date,
        )


class ChunkMetadata(BaseModel):
    """Item fields denormalised onto each chunk for fast filtering."""

    content_type: ContentType
    title: str | None = None
    owner_coach_id: str | None = None
    owner_client_id: str | None = None
    organization_id: str | None = None
    visibility_level: VisibilityLevel
    session_date: date | None = None


class Chunk(BaseModel):
    """A fixed-size overlapping text window, the atomic unit of search.

    A chunk never outlives its item; indices of one item form 0..N-1.
    """

    id: str
    item_id: str
    index: int
    text: str
    vector: list[float]
    metadata: ChunkMetadata


def chunk_id_for(item_id: str, index: int) -> str:
    """Deterministic chunk id, so a retried write overwrites instead of duplicating."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{item_id}:{index}"))
