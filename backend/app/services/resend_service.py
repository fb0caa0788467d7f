"""Resend API メール送信サービス"""
from pathlib import Path
from typing import Optional

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

template_dir = Path(__file__).parent.parent / "templates" / "email"
jinja_env = Environment(
    loader=FileSystemLoader(str(template_dir)),
    autoescape=select_autoescape(["html"]),
)


def render_template(name: str, **context) -> str:
    return jinja_env.get_template(name).render(site_name=settings.SITE_NAME, site_url=settings.SITE_URL, **context)


def is_rate_limited(error: BaseException) -> bool:
    """Resend の 429 (送信レート超過) かどうか"""
    code = getattr(error, "code", None)
    if str(code) == "429":
        return True
    return "rate_limit" in str(getattr(error, "error_type", "")).lower()


def send_email(
    to_email: str,
    subject: str,
    body: str,
    text: Optional[str] = None,
    title: Optional[str] = None,
    unsubscribe_url: Optional[str] = None,
    from_email: Optional[str] = None,
    api_key: Optional[str] = None,
) -> dict:
    """
    HTMLメールをResend APIで送信。
    body は email_base.html でラップする。text があればプレーンテキスト版も付与。
    Returns: {"id": "resend_message_id"} or raises
    """
    resend.api_key = api_key or settings.RESEND_API_KEY

    html = render_template(
        "email_base.html",
        body=body,
        title=title or subject,
        unsubscribe_url=unsubscribe_url,
    )

    params = {
        "from": from_email or settings.RESEND_FROM_EMAIL,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    if text:
        params["text"] = text

    result = resend.Emails.send(params)

    logger.info(f"メール送信成功: to={to_email}, subject={subject[:30]}")
    return result
