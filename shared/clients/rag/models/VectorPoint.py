"""VectorPoint model: payload stored alongside each chunk vector in a RAG backend."""

from datetime import date

from pydantic import BaseModel

from shared.models.content import Chunk, ChunkMetadata, ContentType, ItemStatus, VisibilityLevel


class VectorPoint(BaseModel):
    """Flat payload written next to each chunk vector.

    The owner fields and visibility_level are the access-control keys. They
    are copied from the parent item and never change after ingestion, except
    item_status which flips to "complete" once every chunk of the item is stored.

    Attributes:
        item_id:          Id of the parent content item.
        chunk_index:      Zero-based position of this chunk within the item.
        chunk_text:       Raw text content of this chunk.
        content_type:     Content type of the parent item.
        title:            Title of the parent item.
        owner_coach_id:   Owning coach, if any.
        owner_client_id:  Owning client, if any.
        organization_id:  Owning organisation, if any.
        visibility_level: Visibility of the parent item.
        session_date:     ISO-8601 session date, if any.
        session_day:      Ordinal of session_date, for range filters in the backend.
        item_status:      Status of the parent item at write time.
    """

    item_id: str
    chunk_index: int
    chunk_text: str

    content_type: ContentType
    title: str | None = None

    # access keys
    owner_coach_id: str | None = None
    owner_client_id: str | None = None
    organization_id: str | None = None
    visibility_level: VisibilityLevel

    session_date: date | None = None
    session_day: int | None = None

    item_status: ItemStatus = ItemStatus.PENDING

    @classmethod
    def from_chunk(cls, chunk: Chunk, item_status: ItemStatus = ItemStatus.PENDING) -> "VectorPoint":
        meta = chunk.metadata
        return cls(
            item_id=chunk.item_id,
            chunk_index=chunk.index,
            chunk_text=chunk.text,
            content_type=meta.content_type,
            title=meta.title,
            owner_coach_id=meta.owner_coach_id,
            owner_client_id=meta.owner_client_id,
            organization_id=meta.organization_id,
            visibility_level=meta.visibility_level,
            session_date=meta.session_date,
            session_day=meta.session_date.toordinal() if meta.session_date else None,
            item_status=item_status,
        )

    def to_chunk(self, point_id: str, vector: list[float]) -> Chunk:
        return Chunk(
            id=point_id,
            item_id=self.item_id,
            index=self.chunk_index,
            text=self.chunk_text,
            vector=vector,
            metadata=ChunkMetadata(
                content_type=self.content_type,
                title=self.title,
                owner_coach_id=self.owner_coach_id,
                owner_client_id=self.owner_client_id,
                organization_id=self.organization_id,
                visibility_level=self.visibility_level,
                session_date=self.session_date,
            ),
        )
