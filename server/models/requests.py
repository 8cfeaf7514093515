from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from shared.models.content import ContentItemMeta, VisibilityLevel
from shared.models.identity import Role, Scope
from shared.models.search import SearchFilters


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    filters: SearchFilters | None = None
    threshold: float | None = None
    limit: int | None = None


class ContentCreateRequest(BaseModel):
    content: str
    content_type: str
    title: str | None = None
    owner_coach_id: str | None = None
    owner_client_id: str | None = None
    organization_id: str | None = None
    visibility_level: VisibilityLevel | None = None
    session_date: date | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_meta(self) -> ContentItemMeta:
        return ContentItemMeta(**self.model_dump(exclude={"content"}))


class CredentialCreateRequest(BaseModel):
    role: Role
    owner_id: str
    scopes: list[Scope] | None = None
    expires_at: datetime | None = None
    name: str | None = None


class AssignmentRequest(BaseModel):
    coach_id: str
    client_id: str


class CoachCreateRequest(BaseModel):
    id: str
    name: str
    email: str | None = None


class OrganizationCreateRequest(BaseModel):
    id: str
    name: str


class ClientCreateRequest(BaseModel):
    id: str
    name: str
    organization_id: str
    email: str | None = None
