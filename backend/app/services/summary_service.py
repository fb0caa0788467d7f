"""
デイリーサマリー (Dojo Report) の生成・取得

言語ごとに「最新スナップショット」を1件保持する。
- get_user_summary: 既存スナップショットの参照のみ (書き込みなし)
- generate_user_summary: 既存があれば再利用、無ければ (または force_refresh で)
  ランク別にランダム抽出して新しいスナップショットを作成する
"""
import random
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterator, Optional, Sequence

from sqlalchemy import and_, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.logging import get_logger
from app.models.bookmark import Bookmark, DAILY_SUMMARY_TITLE, response_bookmarks
from app.models.daily_summary import DailySummary, daily_summary_responses
from app.models.language import Language
from app.models.response import Response
from app.schemas.summary import LanguageOutcome, SummaryItem, SummaryResult
from app.services.language_service import LanguageNotFoundError, resolve_languages
from app.services.sharing_status import build_summary_items

logger = get_logger(__name__)

# ランクごとの抽出数 (rank 1 = 最も難しい回答を多めに出す)
RANK_QUOTAS: tuple[tuple[int, int], ...] = ((1, 4), (2, 3), (3, 2))


@dataclass(frozen=True)
class SummaryBatchPolicy:
    """DB負荷を抑えるためのバッチサイズと待機秒数"""
    language_batch_size: int = 2
    language_batch_pause: float = 1.0
    bookmark_batch_size: int = 10
    bookmark_batch_pause: float = 0.1

    @classmethod
    def from_settings(cls) -> "SummaryBatchPolicy":
        return cls(
            language_batch_size=settings.SUMMARY_LANGUAGE_BATCH_SIZE,
            language_batch_pause=settings.SUMMARY_LANGUAGE_BATCH_PAUSE,
            bookmark_batch_size=settings.SUMMARY_BOOKMARK_BATCH_SIZE,
            bookmark_batch_pause=settings.SUMMARY_BOOKMARK_BATCH_PAUSE,
        )


def _chunks(items: Sequence, size: int) -> Iterator[Sequence]:
    size = max(1, size)
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _latest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


# =========================================================
# スナップショット参照
# =========================================================

def get_current_snapshot(db: Session, user_id: str, language_id: str) -> Optional[DailySummary]:
    """(user, language) の最新スナップショット"""
    return db.query(DailySummary).filter(
        DailySummary.user_id == user_id,
        DailySummary.language_id == language_id,
        DailySummary.is_current == True,
    ).order_by(DailySummary.created_at.desc()).first()


def get_snapshot_responses(db: Session, snapshot: DailySummary) -> list[Response]:
    """スナップショットに紐づく回答 (スナップショットと同じ言語のもののみ)"""
    return db.query(Response).join(
        daily_summary_responses,
        daily_summary_responses.c.response_id == Response.id,
    ).filter(
        daily_summary_responses.c.daily_summary_id == snapshot.id,
        Response.language_id == snapshot.language_id,
    ).options(
        selectinload(Response.bookmarks)
    ).order_by(Response.rank, Response.id).all()


def _reuse_snapshot(
    db: Session,
    user_id: str,
    language: Language,
) -> Optional[tuple[list[SummaryItem], datetime, LanguageOutcome]]:
    """回答を1件以上持つ最新スナップショットがあれば、その内容を返す"""
    snapshot = get_current_snapshot(db, user_id, language.id)
    if not snapshot:
        return None
    responses = get_snapshot_responses(db, snapshot)
    if not responses:
        return None

    items = build_summary_items(db, responses)
    outcome = LanguageOutcome(
        language_id=language.id,
        language_code=language.code,
        status="reused",
        response_count=len(items),
    )
    return items, snapshot.created_at, outcome


# =========================================================
# 抽出
# =========================================================

def get_daily_summary_bookmark(db: Session, user_id: str, language_id: str) -> Optional[Bookmark]:
    return db.query(Bookmark).filter(
        Bookmark.user_id == user_id,
        Bookmark.language_id == language_id,
        Bookmark.title == DAILY_SUMMARY_TITLE,
    ).first()


def fetch_rank_pool(db: Session, user_id: str, language_id: str, rank: int) -> list[Response]:
    """
    抽出候補: 一時停止していない、かつユーザー作成のデッキ
    (タイトルが空でも "daily summary" でもないブックマーク) に1つ以上属する回答
    """
    in_user_deck = Response.bookmarks.any(and_(
        Bookmark.title != DAILY_SUMMARY_TITLE,
        Bookmark.title != "",
    ))
    return db.query(Response).filter(
        Response.user_id == user_id,
        Response.language_id == language_id,
        Response.is_paused == False,
        Response.rank == rank,
        in_user_deck,
    ).options(
        selectinload(Response.bookmarks)
    ).order_by(Response.id).all()


def sample_responses(
    db: Session,
    user_id: str,
    language_id: str,
    rng: random.Random,
) -> list[Response]:
    """ランク1→2→3の順に、各プールをシャッフルして上限件数ずつ取り出す"""
    sampled: list[Response] = []
    for rank, quota in RANK_QUOTAS:
        pool = fetch_rank_pool(db, user_id, language_id, rank)
        rng.shuffle(pool)  # Fisher–Yates
        sampled.extend(pool[:quota])
    return sampled


# =========================================================
# 保存
# =========================================================

def _create_snapshot(
    db: Session,
    user_id: str,
    language_id: str,
    responses: list[Response],
    force_refresh: bool = False,
) -> DailySummary:
    """
    新しいスナップショットを is_current=True で作成 (flushのみ)。

    force_refresh なら現在のスナップショットを降格してから作る。
    それ以外で降格するのは回答が1件も紐づかない (再利用できない) ものだけで、
    他リクエストが先に作った最新が残っていればユニーク制約違反
    (IntegrityError) になる。
    """
    demote = db.query(DailySummary).filter(
        DailySummary.user_id == user_id,
        DailySummary.language_id == language_id,
        DailySummary.is_current == True,
    )
    if not force_refresh:
        has_responses = exists().where(daily_summary_responses.c.daily_summary_id == DailySummary.id)
        demote = demote.filter(~has_responses)
    demote.update({DailySummary.is_current: None}, synchronize_session=False)

    snapshot = DailySummary(
        user_id=user_id,
        language_id=language_id,
        is_current=True,
        responses=list(responses),
    )
    db.add(snapshot)
    db.flush()
    return snapshot


def _attach_daily_summary_bookmark(
    db: Session,
    bookmark: Bookmark,
    responses: list[Response],
    policy: SummaryBatchPolicy,
    sleep: Callable[[float], None],
):
    """抽出した回答に "daily summary" ブックマークを付与 (付与済みはスキップ)"""
    batches = list(_chunks(responses, policy.bookmark_batch_size))
    for index, batch in enumerate(batches):
        ids = [r.id for r in batch]
        already = {
            row[0] for row in db.execute(
                select(response_bookmarks.c.response_id).where(
                    response_bookmarks.c.bookmark_id == bookmark.id,
                    response_bookmarks.c.response_id.in_(ids),
                )
            )
        }
        rows = [
            {"response_id": response_id, "bookmark_id": bookmark.id}
            for response_id in ids
            if response_id not in already
        ]
        if rows:
            db.execute(response_bookmarks.insert(), rows)

        if index < len(batches) - 1:
            sleep(policy.bookmark_batch_pause)


def _summarize_language(
    db: Session,
    user_id: str,
    language: Language,
    force_refresh: bool,
    policy: SummaryBatchPolicy,
    sleep: Callable[[float], None],
    rng: random.Random,
) -> tuple[list[SummaryItem], Optional[datetime], LanguageOutcome]:
    if not force_refresh:
        reused = _reuse_snapshot(db, user_id, language)
        if reused:
            return reused

    bookmark = get_daily_summary_bookmark(db, user_id, language.id)
    if not bookmark:
        logger.warning(f"daily summaryブックマークなし: user_id={user_id}, language={language.code}")
        return [], None, LanguageOutcome(
            language_id=language.id,
            language_code=language.code,
            status="skipped",
            reason="missing_bookmark",
        )

    sampled = sample_responses(db, user_id, language.id, rng)
    if not sampled:
        return [], None, LanguageOutcome(
            language_id=language.id,
            language_code=language.code,
            status="empty",
        )

    # デッキ情報は daily summary 付与前の状態で確定させる
    items = build_summary_items(db, sampled)

    try:
        snapshot = _create_snapshot(db, user_id, language.id, sampled, force_refresh)
    except IntegrityError:
        db.rollback()
        logger.warning(f"スナップショット同時作成を検出、既存を再利用: user_id={user_id}, language={language.code}")
        reused = _reuse_snapshot(db, user_id, language)
        if reused:
            return reused
        raise

    created_at = snapshot.created_at
    _attach_daily_summary_bookmark(db, bookmark, sampled, policy, sleep)
    db.commit()

    logger.info(
        f"サマリー作成: user_id={user_id}, language={language.code}, count={len(items)}",
        extra={
            "user_id": user_id,
            "language_code": language.code,
            "extra_data": {"snapshot_id": snapshot.id, "ranks": [i.rank for i in items]},
        },
    )
    return items, created_at, LanguageOutcome(
        language_id=language.id,
        language_code=language.code,
        status="created",
        response_count=len(items),
    )


# =========================================================
# 公開API
# =========================================================

def get_user_summary(
    db: Session,
    user_id: str,
    language_code: Optional[str] = None,
) -> SummaryResult:
    """
    既存のサマリーを取得 (生成はしない)。

    language_code 未指定なら活動実績のある全言語。
    created_at は参照したスナップショットのうち最も新しいもの。
    """
    if not user_id:
        raise ValueError("user_id is required")

    languages = resolve_languages(
        db, user_id, language_code=language_code, all_languages=language_code is None
    )
    result = SummaryResult()
    if not languages:
        logger.info(f"サマリー参照: 対象言語なし user_id={user_id}")
        return result

    for language in languages:
        snapshot = get_current_snapshot(db, user_id, language.id)
        responses = get_snapshot_responses(db, snapshot) if snapshot else []
        if not responses:
            result.languages.append(LanguageOutcome(
                language_id=language.id, language_code=language.code, status="empty"
            ))
            continue

        items = build_summary_items(db, responses)
        result.responses.extend(items)
        result.created_at = _latest(result.created_at, snapshot.created_at)
        result.languages.append(LanguageOutcome(
            language_id=language.id,
            language_code=language.code,
            status="reused",
            response_count=len(items),
        ))

    logger.info(f"サマリー参照: user_id={user_id}, count={len(result.responses)}")
    return result


def generate_user_summary(
    db: Session,
    user_id: str,
    force_refresh: bool = False,
    all_languages: bool = False,
    *,
    language_code: Optional[str] = None,
    policy: Optional[SummaryBatchPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    rng: Optional[random.Random] = None,
) -> SummaryResult:
    """
    サマリーを取得、無ければ生成する。

    言語は policy.language_batch_size 件ずつ順番に処理し、バッチ間で
    policy.language_batch_pause 秒待機する。1言語の失敗はログに残して
    スキップし、残りの言語の処理は続ける。対象言語が1つも無い場合のみ
    LanguageNotFoundError を送出する。
    """
    if not user_id:
        raise ValueError("user_id is required")

    policy = policy or SummaryBatchPolicy.from_settings()
    rng = rng or random.Random()

    languages = resolve_languages(
        db, user_id, language_code=language_code, all_languages=all_languages
    )
    if not languages:
        raise LanguageNotFoundError("No languages found")

    # rollback で失効しても参照できるよう先に取り出しておく
    targets = [(language, language.id, language.code) for language in languages]
    batches = list(_chunks(targets, policy.language_batch_size))
    logger.info(
        f"サマリー生成開始: user_id={user_id}, languages={len(targets)}, "
        f"batches={len(batches)}, force_refresh={force_refresh}"
    )

    result = SummaryResult()
    for index, batch in enumerate(batches):
        for language, language_id, code in batch:
            try:
                items, created_at, outcome = _summarize_language(
                    db, user_id, language, force_refresh, policy, sleep, rng
                )
            except Exception as e:
                db.rollback()
                logger.error(
                    f"サマリー生成エラー: user_id={user_id}, language={code} - {e}",
                    exc_info=True,
                )
                result.languages.append(LanguageOutcome(
                    language_id=language_id,
                    language_code=code,
                    status="skipped",
                    reason="error",
                ))
                continue

            result.responses.extend(items)
            result.created_at = _latest(result.created_at, created_at)
            result.languages.append(outcome)

        if index < len(batches) - 1:
            logger.info(f"次の言語バッチまで待機: {policy.language_batch_pause}秒")
            sleep(policy.language_batch_pause)

    logger.info(f"サマリー生成完了: user_id={user_id}, count={len(result.responses)}")
    return result
