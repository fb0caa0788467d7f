"""コミュニティ共有状態の判定と、サマリー表示用データへの変換"""
from typing import Iterable
from sqlalchemy.orm import Session

from app.models.community_response import CommunityResponse
from app.models.response import Response
from app.schemas.summary import SummaryItem


def get_shared_response_ids(db: Session, response_ids: Iterable[str]) -> set[str]:
    """有効なコミュニティ投稿を持つ回答IDの集合 (1クエリ)"""
    ids = list(response_ids)
    if not ids:
        return set()

    rows = db.query(CommunityResponse.original_response_id).filter(
        CommunityResponse.original_response_id.in_(ids),
        CommunityResponse.is_active == True,
    ).all()
    return {row[0] for row in rows}


def is_shared_to_community(response: Response, shared_ids: set[str]) -> bool:
    """
    自分で作成した回答 (source=local) のみ共有済みと判定する。
    インポートした回答は他人の投稿なので常に False。
    """
    return response.source == "local" and response.id in shared_ids


def to_summary_item(response: Response, shared_ids: set[str]) -> SummaryItem:
    return SummaryItem(
        id=response.id,
        content=response.content,
        created_at=response.created_at,
        rank=response.rank,
        is_paused=response.is_paused,
        furigana=response.furigana,
        is_furigana_enabled=response.is_furigana_enabled,
        is_phonetic_enabled=response.is_phonetic_enabled,
        is_kana_enabled=response.is_kana_enabled,
        breakdown=response.breakdown,
        mobile_breakdown=response.mobile_breakdown,
        response_type=response.response_type,
        source=response.source,
        community_response_id=response.community_response_id,
        decks={b.id: b.title for b in response.bookmarks},
        is_shared_to_community=is_shared_to_community(response, shared_ids),
    )


def build_summary_items(db: Session, responses: list[Response]) -> list[SummaryItem]:
    """回答一覧をデッキ情報・共有フラグ付きに変換 (読み取りのみ)"""
    shared_ids = get_shared_response_ids(db, (r.id for r in responses))
    return [to_summary_item(r, shared_ids) for r in responses]
