"""ダイジェストメール購読API"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import limiter, TEST_EMAIL_RATE_LIMIT, UNSUBSCRIBE_RATE_LIMIT
from app.core.security import ALL_LANGUAGES, validate_unsubscribe_token
from app.models.user import User
from app.schemas.email import (
    EmailAddressUpdateRequest,
    EmailPreferences,
    FrequencyUpdateRequest,
    SubscribeRequest,
    UnsubscribeTokenRequest,
)
from app.services import subscription_service
from app.services.digest_service import DigestError, send_daily_digest
from app.services.language_service import LanguageNotFoundError
from app.routers.deps import require_login
from app.core.logging import get_logger

router = APIRouter(prefix="/api", tags=["email"])
logger = get_logger(__name__)


@router.get("/email/preferences", response_model=EmailPreferences)
async def get_preferences(
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return subscription_service.get_user_email_preferences(db, user.id)


@router.post("/email/subscribe")
async def subscribe(
    req: SubscribeRequest,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    try:
        data = subscription_service.subscribe_user_to_emails(
            db, user.id, req.email, req.frequency, req.language_code
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LanguageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    # ウェルカムメール失敗は購読自体を失敗扱いにしない
    try:
        subscription_service.send_welcome_email(data["email"], user.name)
    except Exception as e:
        logger.error(f"ウェルカムメール送信失敗: user_id={user.id} - {e}")

    return {
        "success": True,
        "data": data,
        "message": f"Successfully subscribed to {req.frequency} email updates",
    }


@router.post("/email/unsubscribe")
async def unsubscribe(
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    subscription_service.unsubscribe_user_from_emails(db, user.id)
    return {"success": True, "message": "Successfully unsubscribed from email updates"}


@router.put("/email/frequency", response_model=EmailPreferences)
async def update_frequency(
    req: FrequencyUpdateRequest,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    return subscription_service.update_email_frequency(db, user.id, req.frequency)


@router.put("/email/address", response_model=EmailPreferences)
async def update_address(
    req: EmailAddressUpdateRequest,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    try:
        return subscription_service.update_user_email_address(db, user.id, req.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/email/test")
@limiter.limit(TEST_EMAIL_RATE_LIMIT)
def send_test_email(
    request: Request,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    """テスト送信 (件名に [TEST]、送信日時は更新しない)"""
    try:
        sent = send_daily_digest(db, user.id, is_test=True)
    except DigestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not sent:
        return {"success": False, "message": "No daily content available yet"}
    return {"success": True, "message": "Test email sent successfully"}


@router.post("/unsubscribe")
@limiter.limit(UNSUBSCRIBE_RATE_LIMIT)
async def unsubscribe_via_token(
    request: Request,
    req: UnsubscribeTokenRequest,
    db: Session = Depends(get_db),
):
    """メール内リンクからの配信停止 (ログイン不要)"""
    token_data = validate_unsubscribe_token(req.token)
    if not token_data:
        raise HTTPException(
            status_code=400,
            detail="Invalid or expired unsubscribe token. The link may have expired (tokens are valid for 30 days).",
        )

    user_id, language_code = token_data
    try:
        if req.unsubscribe_all or language_code == ALL_LANGUAGES:
            subscription_service.unsubscribe_user_from_emails(db, user_id)
            return {
                "message": "You have been successfully unsubscribed from all Kondo emails.",
                "language_code": ALL_LANGUAGES,
            }

        subscription_service.unsubscribe_from_language(db, user_id, language_code)
    except LookupError:
        # LanguageNotFoundError もここで扱う
        raise HTTPException(status_code=404, detail="Subscription not found")

    return {
        "message": f"You have been successfully unsubscribed from {language_code.upper()} emails.",
        "language_code": language_code,
    }
