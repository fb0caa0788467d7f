"""ダイジェストメール購読管理"""
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import utcnow
from app.core.logging import get_logger
from app.models.language import Language
from app.models.user import User
from app.models.user_language_subscription import UserLanguageSubscription
from app.schemas.email import EmailPreferences
from app.services.email_utils import is_disposable_email, is_valid_address, normalize_address
from app.services.language_service import (
    LanguageNotFoundError,
    get_language_by_code,
    get_preferred_language,
)
from app.services.resend_service import render_template, send_email

logger = get_logger(__name__)

FREQUENCIES = ("daily", "weekly")


def _check_frequency(frequency: str):
    if frequency not in FREQUENCIES:
        raise ValueError(f"Invalid email frequency: {frequency}")


def _get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise LookupError("User not found")
    return user


def validate_email_address(email: str) -> bool:
    return is_valid_address(email) and not is_disposable_email(email)


def _upsert_language_subscription(
    db: Session,
    user_id: str,
    language: Language,
    frequency: str,
) -> UserLanguageSubscription:
    subscription = db.query(UserLanguageSubscription).filter(
        UserLanguageSubscription.user_id == user_id,
        UserLanguageSubscription.language_id == language.id,
    ).first()
    if subscription:
        subscription.subscribed = True
        subscription.email_frequency = frequency
    else:
        subscription = UserLanguageSubscription(
            user_id=user_id,
            language_id=language.id,
            subscribed=True,
            email_frequency=frequency,
        )
        db.add(subscription)
    return subscription


def subscribe_user_to_emails(
    db: Session,
    user_id: str,
    email: str,
    frequency: str,
    language_code: Optional[str] = None,
) -> dict:
    """
    ダイジェスト購読を開始。
    language_code 未指定なら学習中言語 (無ければデフォルト言語) を購読する。
    """
    _check_frequency(frequency)
    if not validate_email_address(email):
        raise ValueError("Invalid email address format")

    user = _get_user(db, user_id)
    if language_code:
        language = get_language_by_code(db, language_code)
    else:
        language = get_preferred_language(db, user_id)
    if not language:
        raise LanguageNotFoundError(f"Language not found for code: {language_code}")

    now = utcnow()
    user.subscribed = True
    user.subscription_email = normalize_address(email)
    user.email_frequency = frequency
    user.email_subscribed_at = now
    user.unsubscribed_at = None
    _upsert_language_subscription(db, user_id, language, frequency)
    db.commit()

    logger.info(f"メール購読開始: user_id={user_id}, language={language.code}, frequency={frequency}")
    return {
        "user_id": user_id,
        "email": user.subscription_email,
        "frequency": frequency,
        "language_code": language.code,
        "subscription_date": now,
    }


def unsubscribe_user_from_emails(db: Session, user_id: str):
    """全言語の購読を停止"""
    user = _get_user(db, user_id)
    user.subscribed = False
    user.unsubscribed_at = utcnow()
    db.query(UserLanguageSubscription).filter(
        UserLanguageSubscription.user_id == user_id
    ).update({UserLanguageSubscription.subscribed: False}, synchronize_session=False)
    db.commit()
    logger.info(f"メール購読停止: user_id={user_id}")


def unsubscribe_from_language(db: Session, user_id: str, language_code: str):
    """指定言語の購読のみ停止 (他言語の購読とユーザーの購読フラグはそのまま)"""
    _get_user(db, user_id)
    language = get_language_by_code(db, language_code)
    if not language:
        raise LanguageNotFoundError(f"Language not found for code: {language_code}")

    db.query(UserLanguageSubscription).filter(
        UserLanguageSubscription.user_id == user_id,
        UserLanguageSubscription.language_id == language.id,
    ).update({UserLanguageSubscription.subscribed: False}, synchronize_session=False)
    db.commit()
    logger.info(f"言語別メール購読停止: user_id={user_id}, language={language_code}")


def get_user_email_preferences(db: Session, user_id: str) -> EmailPreferences:
    user = _get_user(db, user_id)
    return EmailPreferences(
        is_subscribed=bool(user.subscribed),
        email=user.subscription_email or user.email,
        frequency=user.email_frequency or "daily",
        last_email_sent=user.last_email_sent,
    )


def update_email_frequency(db: Session, user_id: str, frequency: str) -> EmailPreferences:
    _check_frequency(frequency)
    user = _get_user(db, user_id)
    user.email_frequency = frequency
    db.query(UserLanguageSubscription).filter(
        UserLanguageSubscription.user_id == user_id
    ).update({UserLanguageSubscription.email_frequency: frequency}, synchronize_session=False)
    db.commit()
    return get_user_email_preferences(db, user_id)


def update_user_email_address(db: Session, user_id: str, new_email: str) -> EmailPreferences:
    if not validate_email_address(new_email):
        raise ValueError("Invalid email address format")
    user = _get_user(db, user_id)
    user.subscription_email = normalize_address(new_email)
    # 新しい宛先は配信可能として扱う
    user.deliverable = True
    db.commit()
    return get_user_email_preferences(db, user_id)


def send_welcome_email(email: str, user_name: Optional[str]):
    name = user_name or f"{settings.SITE_NAME} User"
    body = render_template("welcome.html", user_name=name)
    text = render_template("welcome.txt", user_name=name)
    send_email(
        to_email=email,
        subject=f"Welcome to {settings.SITE_NAME} Daily Updates!",
        body=body,
        text=text,
        title=f"Welcome to {settings.SITE_NAME}",
    )


def get_daily_subscribers(db: Session, frequency: str) -> dict[str, list[str]]:
    """
    指定頻度の配信対象。
    Returns: {user_id: [language_code, ...]} (有効・配信可能・購読中のユーザーのみ)
    """
    _check_frequency(frequency)
    rows = db.query(UserLanguageSubscription.user_id, Language.code).join(
        Language, Language.id == UserLanguageSubscription.language_id
    ).join(
        User, User.id == UserLanguageSubscription.user_id
    ).filter(
        UserLanguageSubscription.subscribed == True,
        UserLanguageSubscription.email_frequency == frequency,
        Language.is_active == True,
        User.subscribed == True,
        User.is_active == True,
        User.deliverable == True,
    ).order_by(UserLanguageSubscription.user_id, Language.code).all()

    subscribers: dict[str, list[str]] = {}
    for user_id, code in rows:
        subscribers.setdefault(user_id, []).append(code)
    return subscribers
