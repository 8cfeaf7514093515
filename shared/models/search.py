"""Pydantic models for search filters and ranked results."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from shared.models.content import ContentType


class SearchFilters(BaseModel):
    """Optional caller-supplied restrictions, intersected with the access scope.

    Date bounds are inclusive. Items without a session date never match a
    date-bounded filter.
    """

    content_types: list[ContentType] | None = None
    owner_coach_id: str | None = None
    owner_client_id: str | None = None
    organization_id: str | None = None
    session_date_from: date | None = None
    session_date_to: date | None = None

    def matches(self, record: Any) -> bool:
        """Check a ContentItem or ChunkMetadata against the filters."""
        if self.content_types and record.content_type not in self.content_types:
            return False
        if self.owner_coach_id is not None and record.owner_coach_id != self.owner_coach_id:
            return False
        if self.owner_client_id is not None and record.owner_client_id != self.owner_client_id:
            return False
        if self.organization_id is not None and record.organization_id != self.organization_id:
            return False
        if self.session_date_from is not None or self.session_date_to is not None:
            if record.session_date is None:
                return False
            if self.session_date_from is not None and record.session_date < self.session_date_from:
                return False
            if self.session_date_to is not None and record.session_date > self.session_date_to:
                return False
        return True


class RankedChunk(BaseModel):
    """A search hit, enriched with presentation fields of its parent item."""

    chunk_id: str
    item_id: str
    index: int
    text: str
    similarity: float
    content_type: ContentType
    title: str | None = None
    session_date: date | None = None
    owner_coach_id: str | None = None
    owner_client_id: str | None = None


class TimelineEntry(BaseModel):
    """One item in a client's chronological history."""

    item_id: str
    content_type: ContentType
    title: str
    session_date: date | None = None
    summary: str
    owner_coach_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
