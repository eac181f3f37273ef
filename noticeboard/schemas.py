from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============= ANNOUNCEMENT SCHEMAS =============

class AnnouncementIn(BaseModel):
    """Body of create and update requests. Emptiness is checked by the repository."""
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None


class Announcement(CamelModel):
    id: str
    title: str = ""
    content: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # stored records may carry fields we don't know about; keep them on update
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Pagination(CamelModel):
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0


class AnnouncementPage(CamelModel):
    """One page of the board. error is set when the listing itself failed."""
    announcements: List[Announcement] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    error: Optional[str] = None


class AnnouncementListResponse(CamelModel):
    announcements: List[Announcement]
    pagination: Pagination


# ============= RESULT SCHEMAS =============

class CreateResult(BaseModel):
    success: bool = True
    id: str


class SuccessResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
