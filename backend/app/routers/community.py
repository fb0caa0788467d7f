"""コミュニティフィードAPI"""
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.user import User
from app.schemas.community import CommunityFeed, CommunityFilters, SharingStats
from app.services import community_service
from app.routers.deps import require_login

router = APIRouter(prefix="/api/community", tags=["community"])

# success=False のうち 404 として返すもの
_NOT_FOUND_ERRORS = (
    "Response not found",
    "Community response not found",
    "Community response not found or no longer available",
)


def _raise_on_failure(result: dict) -> dict:
    if result.get("success"):
        return result
    error = result.get("error", "Request failed")
    status_code = 404 if error in _NOT_FOUND_ERRORS else 400
    raise HTTPException(status_code=status_code, detail=error)


@router.post("/share/{response_id}")
async def share(
    response_id: str,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return _raise_on_failure(community_service.share_to_community(db, user.id, response_id))


@router.post("/import/{community_response_id}")
async def import_response(
    community_response_id: str,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return _raise_on_failure(community_service.import_from_community(db, user.id, community_response_id))


@router.delete("/{community_response_id}")
async def delete(
    community_response_id: str,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return _raise_on_failure(community_service.delete_community_response(db, user.id, community_response_id))


@router.get("/shared/{response_id}")
async def shared_status(
    response_id: str,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return community_service.is_response_shared(db, response_id)


@router.get("/stats", response_model=SharingStats)
async def stats(
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return community_service.get_user_sharing_stats(db, user.id)


@router.get("/feed", response_model=CommunityFeed)
async def feed(
    bookmark_title: Optional[str] = Query(None, max_length=255),
    creator_alias: Optional[str] = Query(None, max_length=50),
    language_id: Optional[str] = Query(None, max_length=32),
    min_imports: Optional[int] = Query(None, ge=0),
    sort_by: Literal["recent", "imports", "popular"] = "recent",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    filters = CommunityFilters(
        bookmark_title=bookmark_title,
        creator_alias=creator_alias,
        language_id=language_id,
        min_imports=min_imports,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return community_service.get_community_feed(db, filters, page, limit)
