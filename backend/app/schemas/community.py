from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class CommunityFilters(BaseModel):
    bookmark_title: Optional[str] = None
    creator_alias: Optional[str] = None
    language_id: Optional[str] = None
    min_imports: Optional[int] = None
    sort_by: Literal["recent", "imports", "popular"] = "recent"
    sort_order: Literal["asc", "desc"] = "desc"


class CommunityResponseInfo(BaseModel):
    id: str
    original_response_id: Optional[str] = None
    creator_alias: str
    bookmark_title: str
    language_id: str
    content: str
    breakdown: Optional[str] = None
    furigana: Optional[str] = None
    response_type: Optional[str] = None
    is_active: bool
    import_count: int
    view_count: int
    shared_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CommunityFeed(BaseModel):
    responses: list[CommunityResponseInfo] = Field(default_factory=list)
    total_count: int = 0
    has_more: bool = False


class SharingStats(BaseModel):
    total_local: int = 0
    total_imported: int = 0
    total_shared: int = 0
    total_imports_by_others: int = 0
