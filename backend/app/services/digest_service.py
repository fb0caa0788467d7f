"""
Dojo Report (ダイジェストメール) 送信

サマリーの先頭 DIGEST_MAX_RESPONSES 件をHTML/テキストに整形し、Resendで送信する。
"""
import urllib.parse
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import utcnow
from app.core.logging import get_logger
from app.core.security import ALL_LANGUAGES, generate_unsubscribe_token
from app.models.user import User
from app.schemas.summary import SummaryItem
from app.services.email_format import EmailFormatOptions, format_response_html, format_response_text
from app.services.language_service import get_user_language_code
from app.services.resend_service import is_rate_limited, render_template, send_email
from app.services.summary_service import generate_user_summary, get_user_summary

logger = get_logger(__name__)


class DigestError(Exception):
    """ダイジェスト送信の失敗 (未購読・宛先なし・送信エラー)"""

    def __init__(self, message: str, rate_limited: bool = False):
        super().__init__(message)
        self.rate_limited = rate_limited


def format_report_date(now: datetime) -> str:
    """例: October 19, 2026"""
    return f"{now:%B} {now.day}, {now.year}"


def build_digest_subject(now: datetime, is_test: bool = False) -> str:
    subject = f"Dojo Report - {format_report_date(now)}"
    return f"[TEST] {subject}" if is_test else subject


def build_unsubscribe_url(user_id: str, language_code: str = ALL_LANGUAGES) -> str:
    token = generate_unsubscribe_token(user_id, language_code)
    return f"{settings.SITE_URL}/unsubscribe?token={urllib.parse.quote(token)}"


def get_recipient_email(user: User) -> Optional[str]:
    return user.subscription_email or user.email


def _get_subscribed_recipient(db: Session, user_id: str) -> tuple[User, str]:
    user = db.get(User, user_id)
    if not user or not user.subscribed:
        raise DigestError("User not subscribed to emails")

    recipient = get_recipient_email(user)
    if not recipient:
        raise DigestError("No email address found for user")
    return user, recipient


def render_digest(
    items: list[SummaryItem],
    language_code: str,
    now: datetime,
    is_test: bool = False,
    unsubscribe_url: Optional[str] = None,
) -> tuple[str, str]:
    """(HTML本文, テキスト本文)"""
    options = EmailFormatOptions(language=language_code)
    report_date = format_report_date(now)

    body = render_template(
        "daily_digest.html",
        items=[format_response_html(item.content, options) for item in items],
        report_date=report_date,
        is_test=is_test,
    )
    text = render_template(
        "daily_digest.txt",
        items=[format_response_text(item.content, options) for item in items],
        report_date=report_date,
        is_test=is_test,
        unsubscribe_url=unsubscribe_url,
    )
    return body, text


def _deliver(
    db: Session,
    user: User,
    recipient: str,
    items: list[SummaryItem],
    language_code: str,
    is_test: bool,
    unsubscribe_language: str,
) -> bool:
    now = datetime.now()
    items = items[:settings.DIGEST_MAX_RESPONSES]
    unsubscribe_url = build_unsubscribe_url(user.id, unsubscribe_language)
    body, text = render_digest(items, language_code, now, is_test, unsubscribe_url)
    subject = build_digest_subject(now, is_test)

    try:
        send_email(
            to_email=recipient,
            subject=subject,
            body=body,
            text=text,
            title=f"{format_report_date(now)} Dojo Report",
            unsubscribe_url=unsubscribe_url,
        )
    except Exception as e:
        logger.error(f"ダイジェスト送信失敗: user_id={user.id}, language={language_code} - {e}")
        raise DigestError("Failed to send daily digest", rate_limited=is_rate_limited(e)) from e

    # テスト送信では送信日時を更新しない
    if not is_test:
        user.last_email_sent = utcnow()
        db.commit()

    logger.info(
        f"ダイジェスト送信: user_id={user.id}, language={language_code}, count={len(items)}, test={is_test}"
    )
    return True


def send_daily_digest(db: Session, user_id: str, is_test: bool = False) -> bool:
    """
    学習中言語のDojo Reportを送信。
    Returns: 送信した場合True、送るコンテンツが無い場合False
    """
    user, recipient = _get_subscribed_recipient(db, user_id)

    try:
        summary = generate_user_summary(db, user_id)
    except LookupError as e:
        raise DigestError(str(e)) from e

    if not summary.responses:
        logger.info(f"送信コンテンツなし: user_id={user_id}")
        return False

    language_code = get_user_language_code(db, user_id)
    return _deliver(db, user, recipient, summary.responses, language_code, is_test, ALL_LANGUAGES)


def send_dojo_report_by_language_code(
    db: Session,
    user_id: str,
    language_code: str,
    is_test: bool = False,
) -> bool:
    """言語別のDojo Reportを送信 (スナップショットが無ければその言語だけ生成)"""
    user, recipient = _get_subscribed_recipient(db, user_id)

    try:
        summary = get_user_summary(db, user_id, language_code)
        if not summary.responses:
            summary = generate_user_summary(db, user_id, language_code=language_code)
    except LookupError as e:
        raise DigestError(str(e)) from e

    if not summary.responses:
        logger.info(f"送信コンテンツなし: user_id={user_id}, language={language_code}")
        return False

    return _deliver(db, user, recipient, summary.responses, language_code, is_test, language_code)


def check_user_has_daily_content(db: Session, user_id: str) -> bool:
    try:
        summary = generate_user_summary(db, user_id)
    except Exception as e:
        logger.error(f"コンテンツ確認エラー: user_id={user_id} - {e}")
        return False
    return len(summary.responses) > 0
