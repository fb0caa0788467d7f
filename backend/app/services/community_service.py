"""
コミュニティ共有・インポート

戻り値は {"success": bool, "error": str, ...} 形式の辞書。
success=False はユーザー操作の誤り (未作成エイリアス・二重共有など) を表す。
"""
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.logging import get_logger
from app.models.bookmark import Bookmark, DAILY_SUMMARY_TITLE
from app.models.community_import import CommunityImport
from app.models.community_response import CommunityResponse
from app.models.response import Response
from app.models.user import User
from app.schemas.community import CommunityFeed, CommunityFilters, CommunityResponseInfo, SharingStats
from app.services.language_service import get_preferred_language

logger = get_logger(__name__)

UNTITLED_DECK = "Untitled"


def _failure(error: str) -> dict:
    return {"success": False, "error": error}


def _copy_content(source, target):
    for field in ("content", "breakdown", "mobile_breakdown", "furigana", "audio", "audio_mime_type", "response_type"):
        setattr(target, field, getattr(source, field))


def share_to_community(db: Session, user_id: str, response_id: str) -> dict:
    user = db.get(User, user_id)
    if not user or not user.alias:
        return _failure("You need to create a public alias before sharing to the community feed")

    response = db.get(Response, response_id)
    if not response:
        return _failure("Response not found")
    if response.user_id != user_id:
        return _failure("You can only share your own responses")
    if response.source != "local":
        return _failure("Imported responses cannot be shared again")

    existing = db.query(CommunityResponse).filter(
        CommunityResponse.original_response_id == response_id
    ).first()
    if existing and existing.is_active:
        return _failure("This response has already been shared to the community")

    bookmark_title = next(
        (b.title for b in sorted(response.bookmarks, key=lambda b: (b.created_at or utcnow(), b.title))
         if b.title and b.title != DAILY_SUMMARY_TITLE),
        UNTITLED_DECK,
    )

    try:
        if existing:
            # 削除済みの投稿を再公開
            community_response = existing
            community_response.is_active = True
            community_response.shared_at = utcnow()
        else:
            community_response = CommunityResponse(
                original_response_id=response_id,
                creator_user_id=user_id,
                language_id=response.language_id,
            )
            db.add(community_response)

        community_response.creator_alias = user.alias
        community_response.bookmark_title = bookmark_title
        _copy_content(response, community_response)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"コミュニティ共有エラー: user_id={user_id}, response_id={response_id} - {e}")
        return _failure("Failed to share response to community. Please try again.")

    db.refresh(community_response)
    logger.info(f"コミュニティ共有: user_id={user_id}, community_response_id={community_response.id}")
    return {
        "success": True,
        "community_response": CommunityResponseInfo.model_validate(community_response),
    }


def import_from_community(db: Session, user_id: str, community_response_id: str) -> dict:
    community_response = db.get(CommunityResponse, community_response_id)
    if not community_response or not community_response.is_active:
        return _failure("Community response not found or no longer available")
    if community_response.creator_user_id == user_id:
        return _failure("You cannot import your own shared response")

    already = db.query(CommunityImport).filter(
        CommunityImport.user_id == user_id,
        CommunityImport.community_response_id == community_response_id,
    ).first()
    if already:
        return _failure("You have already imported this response")

    language = get_preferred_language(db, user_id)
    if not language:
        return _failure("No language selected")

    try:
        bookmark = db.query(Bookmark).filter(
            Bookmark.user_id == user_id,
            Bookmark.language_id == language.id,
            Bookmark.title == community_response.bookmark_title,
        ).first()
        was_bookmark_created = bookmark is None
        if was_bookmark_created:
            bookmark = Bookmark(user_id=user_id, language_id=language.id, title=community_response.bookmark_title)
            db.add(bookmark)

        imported = Response(
            user_id=user_id,
            language_id=language.id,
            source="imported",
            community_response_id=community_response_id,
            bookmarks=[bookmark],
        )
        _copy_content(community_response, imported)
        db.add(imported)
        db.flush()

        db.add(CommunityImport(
            user_id=user_id,
            community_response_id=community_response_id,
            imported_response_id=imported.id,
            imported_bookmark_id=bookmark.id,
            was_bookmark_created=was_bookmark_created,
        ))
        db.query(CommunityResponse).filter(
            CommunityResponse.id == community_response_id
        ).update({CommunityResponse.import_count: CommunityResponse.import_count + 1}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"コミュニティインポートエラー: user_id={user_id}, community_response_id={community_response_id} - {e}")
        return _failure("Failed to import response. Please try again.")

    logger.info(f"コミュニティインポート: user_id={user_id}, response_id={imported.id}")
    return {
        "success": True,
        "response_id": imported.id,
        "bookmark_id": bookmark.id,
        "was_bookmark_created": was_bookmark_created,
    }


def get_community_feed(
    db: Session,
    filters: Optional[CommunityFilters] = None,
    page: int = 1,
    limit: int = 20,
) -> CommunityFeed:
    filters = filters or CommunityFilters()
    page = max(1, page)
    offset = (page - 1) * limit

    query = db.query(CommunityResponse).filter(CommunityResponse.is_active == True)
    if filters.bookmark_title:
        query = query.filter(CommunityResponse.bookmark_title.ilike(f"%{filters.bookmark_title}%"))
    if filters.creator_alias:
        query = query.filter(CommunityResponse.creator_alias.ilike(f"%{filters.creator_alias}%"))
    if filters.language_id:
        query = query.filter(CommunityResponse.language_id == filters.language_id)
    if filters.min_imports and filters.min_imports > 0:
        query = query.filter(CommunityResponse.import_count >= filters.min_imports)

    sort_column = {
        "recent": CommunityResponse.shared_at,
        "imports": CommunityResponse.import_count,
        "popular": CommunityResponse.view_count,
    }[filters.sort_by]
    order = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()

    total_count = query.count()
    rows = query.order_by(order, CommunityResponse.id).offset(offset).limit(limit).all()

    ids = [r.id for r in rows]
    if ids:
        db.query(CommunityResponse).filter(
            CommunityResponse.id.in_(ids)
        ).update({CommunityResponse.view_count: CommunityResponse.view_count + 1}, synchronize_session=False)
        db.commit()

    return CommunityFeed(
        responses=[CommunityResponseInfo.model_validate(r) for r in rows],
        total_count=total_count,
        has_more=offset + limit < total_count,
    )


def is_response_shared(db: Session, response_id: str) -> dict:
    community_response = db.query(CommunityResponse).filter(
        CommunityResponse.original_response_id == response_id,
        CommunityResponse.is_active == True,
    ).first()
    if not community_response:
        return {"is_shared": False}
    return {
        "is_shared": True,
        "community_response": CommunityResponseInfo.model_validate(community_response),
    }


def delete_community_response(db: Session, user_id: str, community_response_id: str) -> dict:
    """投稿者本人のみ削除可 (論理削除。インポート済みのコピーは残る)"""
    community_response = db.get(CommunityResponse, community_response_id)
    if not community_response or not community_response.is_active:
        return _failure("Community response not found")
    if community_response.creator_user_id != user_id:
        return _failure("You can only delete your own shared responses")

    community_response.is_active = False
    db.commit()
    logger.info(f"コミュニティ投稿削除: user_id={user_id}, community_response_id={community_response_id}")
    return {"success": True}


def get_user_sharing_stats(db: Session, user_id: str) -> SharingStats:
    def count_source(source: str) -> int:
        return db.query(func.count(Response.id)).filter(
            Response.user_id == user_id, Response.source == source
        ).scalar() or 0

    shared_count, imports_by_others = db.query(
        func.count(CommunityResponse.id),
        func.coalesce(func.sum(CommunityResponse.import_count), 0),
    ).filter(
        CommunityResponse.creator_user_id == user_id,
        CommunityResponse.is_active == True,
    ).one()

    return SharingStats(
        total_local=count_source("local"),
        total_imported=count_source("imported"),
        total_shared=shared_count or 0,
        total_imports_by_others=int(imports_by_others or 0),
    )
