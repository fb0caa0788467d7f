"""メール送信のスロットリングと緊急停止 (Redisで全プロセス共有)"""
from app.core.redis import get_sync_redis
from app.core.logging import get_logger

logger = get_logger(__name__)

THROTTLE_KEY = "digest:throttle_extra"
EMERGENCY_STOP_KEY = "digest:emergency_stop"
BASE_SLEEP = 1  # 1通ごとの基本sleep秒数
THROTTLE_INCREMENT = 5  # Resend 429時の追加秒数
THROTTLE_TTL = 600  # 追加分は10分で自然回復


def get_throttle_sleep(redis=None) -> int:
    """現在のスロットリング秒数を取得"""
    redis = redis or get_sync_redis()
    extra = redis.get(THROTTLE_KEY)
    return BASE_SLEEP + (int(extra) if extra else 0)


def increase_throttle(redis=None) -> int:
    """スロットリングを増加 (Resend 429時)"""
    redis = redis or get_sync_redis()
    current = redis.get(THROTTLE_KEY)
    new_val = (int(current) if current else 0) + THROTTLE_INCREMENT
    redis.set(THROTTLE_KEY, str(new_val), ex=THROTTLE_TTL)
    logger.warning(f"スロットリング増加: +{new_val}秒")
    return new_val


def reset_throttle(redis=None):
    redis = redis or get_sync_redis()
    redis.delete(THROTTLE_KEY)


def check_emergency_stop(redis=None) -> bool:
    """緊急停止フラグチェック"""
    redis = redis or get_sync_redis()
    return bool(redis.get(EMERGENCY_STOP_KEY))


def set_emergency_stop(active: bool, redis=None):
    """緊急停止フラグ設定"""
    redis = redis or get_sync_redis()
    if active:
        redis.set(EMERGENCY_STOP_KEY, "1")
        logger.warning("緊急停止フラグON")
    else:
        redis.delete(EMERGENCY_STOP_KEY)
        logger.info("緊急停止フラグOFF")
