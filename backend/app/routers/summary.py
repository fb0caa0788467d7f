"""デイリーサマリー (Dojo Report) API"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import limiter, SUMMARY_REFRESH_RATE_LIMIT
from app.models.user import User
from app.schemas.summary import GenerateSummaryRequest, SummaryResult
from app.services.digest_service import check_user_has_daily_content
from app.services.language_service import LanguageNotFoundError
from app.services.summary_service import generate_user_summary, get_user_summary
from app.routers.deps import require_login

router = APIRouter(prefix="/api/summary", tags=["summary"])


@router.get("", response_model=SummaryResult)
def read_summary(
    language: Optional[str] = Query(None, max_length=10),
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    """既存サマリー取得 (生成しない)"""
    try:
        return get_user_summary(db, user.id, language)
    except LanguageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# サマリー生成は言語バッチ間で待機するため、スレッドプールで実行する (def)
@router.post("/generate", response_model=SummaryResult)
@limiter.limit(SUMMARY_REFRESH_RATE_LIMIT)
def generate_summary(
    request: Request,
    req: GenerateSummaryRequest,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    try:
        return generate_user_summary(
            db,
            user.id,
            force_refresh=req.force_refresh,
            all_languages=req.all_languages,
        )
    except LanguageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/available")
def summary_available(
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return {"available": check_user_has_daily_content(db, user.id)}
