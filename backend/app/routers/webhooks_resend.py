"""Resend Webhook ルーター (bounce/complaint → deliverable=false)"""
import json

from fastapi import APIRouter, Depends, Request, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from app.core.config import settings
from app.core.database import get_db
from app.models.user import User
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

UNDELIVERABLE_EVENTS = ("email.bounced", "email.complained")


@router.post("/api/webhooks/resend")
async def resend_webhook(request: Request, db: Session = Depends(get_db)):
    """Resend Webhook エンドポイント (Svix署名検証)"""
    payload = await request.body()

    webhook_secret = settings.RESEND_WEBHOOK_SECRET
    if webhook_secret:
        headers = {
            "svix-id": request.headers.get("svix-id", ""),
            "svix-timestamp": request.headers.get("svix-timestamp", ""),
            "svix-signature": request.headers.get("svix-signature", ""),
        }
        try:
            Webhook(webhook_secret).verify(payload, headers)
        except WebhookVerificationError:
            logger.error("Resend webhook署名検証失敗")
            raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid payload")

    event_type = data.get("type", "")
    if event_type in UNDELIVERABLE_EVENTS:
        marked = mark_undeliverable(db, data)
        return {"received": True, "processed": True, "users": marked}

    logger.info(f"未処理のResendイベント: {event_type}")
    return {"received": True, "processed": False}


def mark_undeliverable(db: Session, data: dict) -> int:
    """bounce/complaint の宛先ユーザーを配信停止にする"""
    to_emails = data.get("data", {}).get("to", [])
    if isinstance(to_emails, str):
        to_emails = [to_emails]

    marked = 0
    for email in to_emails:
        users = db.query(User).filter(
            or_(User.email == email, User.subscription_email == email)
        ).all()
        for user in users:
            user.deliverable = False
            marked += 1
            logger.warning(f"配信停止: user_id={user.id}, email={email}, event={data.get('type')}")

    db.commit()
    return marked
