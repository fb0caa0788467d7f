"""Dojo Report メール配信ジョブ (日次・週次)"""
import time
from typing import Callable

from sqlalchemy.orm import sessionmaker

from app.core.database import SessionLocal
from app.core.logging import get_logger
from app.scheduler.throttle_manager import check_emergency_stop, get_throttle_sleep, increase_throttle
from app.services.digest_service import DigestError, send_dojo_report_by_language_code
from app.services.subscription_service import get_daily_subscribers

logger = get_logger(__name__)


def send_digests(
    frequency: str,
    session_factory: sessionmaker = SessionLocal,
    sleep: Callable[[float], None] = time.sleep,
    redis=None,
) -> dict:
    """
    購読中の (ユーザー, 言語) ごとにDojo Reportを送信。
    1言語の送信失敗はログに残して続行。緊急停止フラグが立ったら中断する。
    """
    stats = {"sent": 0, "empty": 0, "failed": 0, "stopped": False}
    if check_emergency_stop(redis):
        logger.info(f"緊急停止中: {frequency}配信スキップ")
        stats["stopped"] = True
        return stats

    db = session_factory()
    try:
        subscribers = get_daily_subscribers(db, frequency)
        logger.info(f"{frequency}配信開始: 対象ユーザー {len(subscribers)}件")

        for user_id, language_codes in subscribers.items():
            for code in language_codes:
                if check_emergency_stop(redis):
                    logger.warning(f"緊急停止検出: {frequency}配信を中断")
                    stats["stopped"] = True
                    return stats

                try:
                    sent = send_dojo_report_by_language_code(db, user_id, code)
                except Exception as e:
                    db.rollback()
                    stats["failed"] += 1
                    if isinstance(e, DigestError) and e.rate_limited:
                        increase_throttle(redis)
                    logger.error(f"配信エラー: user_id={user_id}, language={code} - {e}")
                    continue

                if not sent:
                    stats["empty"] += 1
                    continue
                stats["sent"] += 1
                sleep(get_throttle_sleep(redis))
    finally:
        db.close()

    logger.info(f"{frequency}配信完了", extra={"job": f"{frequency}_digest", "extra_data": stats})
    return stats


def send_daily_emails(**kwargs) -> dict:
    return send_digests("daily", **kwargs)


def send_weekly_emails(**kwargs) -> dict:
    return send_digests("weekly", **kwargs)
