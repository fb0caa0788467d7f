from functools import lru_cache

import redis.asyncio as aioredis
import redis as sync_redis
from app.core.config import settings


@lru_cache(maxsize=1)
def _async_pool() -> aioredis.ConnectionPool:
    """非同期接続プール (初回利用時に生成)"""
    return aioredis.ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=20,
        decode_responses=True,
    )


@lru_cache(maxsize=1)
def _sync_pool() -> sync_redis.ConnectionPool:
    """同期接続プール (Scheduler用)"""
    return sync_redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=10,
        decode_responses=True,
    )


async def get_redis() -> aioredis.Redis:
    """FastAPI依存関数: 非同期Redisクライアント取得"""
    return aioredis.Redis(connection_pool=_async_pool())


def get_sync_redis() -> sync_redis.Redis:
    """同期Redisクライアント取得"""
    return sync_redis.Redis(connection_pool=_sync_pool())


async def check_redis_connection() -> bool:
    """Redis接続チェック"""
    try:
        r = await get_redis()
        await r.ping()
        return True
    except Exception:
        return False
