from pydantic import BaseModel, Field


class ScrollPage(BaseModel):
    """One page of a filtered point listing. next_page_offset is None on the last page."""

    points: list[dict] = Field(default_factory=list)
    next_page_offset: str | int | None = None
