from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class SummaryItem(BaseModel):
    """サマリーに含まれる回答 (デッキ一覧とコミュニティ共有フラグ付き)"""
    id: str
    content: str
    created_at: Optional[datetime] = None
    rank: int
    is_paused: bool = False
    furigana: Optional[str] = None
    is_furigana_enabled: bool = False
    is_phonetic_enabled: bool = True
    is_kana_enabled: bool = True
    breakdown: Optional[str] = None
    mobile_breakdown: Optional[str] = None
    response_type: Optional[str] = None
    source: str = "local"
    community_response_id: Optional[str] = None
    decks: dict[str, str] = Field(default_factory=dict)  # bookmark_id -> title
    is_shared_to_community: bool = False


class LanguageOutcome(BaseModel):
    """言語ごとの処理結果"""
    language_id: str
    language_code: Optional[str] = None
    status: Literal["reused", "created", "empty", "skipped"]
    reason: Optional[str] = None  # skipped時: missing_bookmark / error
    response_count: int = 0


class SummaryResult(BaseModel):
    responses: list[SummaryItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    languages: list[LanguageOutcome] = Field(default_factory=list)


class GenerateSummaryRequest(BaseModel):
    force_refresh: bool = False
    all_languages: bool = False
