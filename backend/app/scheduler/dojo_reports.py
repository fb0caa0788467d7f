"""毎日のDojo Report作成ジョブ (全ユーザー・全言語のサマリーを作り直す)"""
import time
from typing import Callable

from sqlalchemy.orm import sessionmaker

from app.core.database import SessionLocal
from app.core.logging import get_logger
from app.models.user import User
from app.services.language_service import LanguageNotFoundError
from app.services.summary_service import generate_user_summary

logger = get_logger(__name__)


def build_dojo_reports(
    session_factory: sessionmaker = SessionLocal,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """
    有効ユーザーごとに force_refresh でサマリーを生成する。
    1ユーザーの失敗はログに残して次のユーザーへ進む。
    """
    logger.info("Dojo Report作成開始")
    stats = {"users": 0, "created": 0, "no_language": 0, "failed": 0}

    db = session_factory()
    try:
        user_ids = [row[0] for row in db.query(User.id).filter(User.is_active == True).order_by(User.id)]
        for user_id in user_ids:
            stats["users"] += 1
            try:
                result = generate_user_summary(
                    db, user_id, force_refresh=True, all_languages=True, sleep=sleep
                )
            except LanguageNotFoundError:
                stats["no_language"] += 1
                continue
            except Exception as e:
                db.rollback()
                stats["failed"] += 1
                logger.error(f"Dojo Report作成エラー: user_id={user_id} - {e}", exc_info=True)
                continue

            stats["created"] += sum(1 for o in result.languages if o.status == "created")
    finally:
        db.close()

    logger.info("Dojo Report作成完了", extra={"job": "build_dojo_reports", "extra_data": stats})
    return stats
