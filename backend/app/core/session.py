"""ログインセッション参照

セッションの発行・破棄は認証サービス側が行う。ここでは Redis の
session:<id> ハッシュから user_id を読むだけ (アイドルTTLは延長する)。
"""
from typing import Optional
import redis.asyncio as aioredis
from app.core.config import settings

SESSION_PREFIX = "session:"
SESSION_TTL = settings.SESSION_TIMEOUT_MINUTES * 60  # 秒


async def get_session_user_id(r: aioredis.Redis, session_id: Optional[str]) -> Optional[str]:
    if not session_id:
        return None
    key = f"{SESSION_PREFIX}{session_id}"
    user_id = await r.hget(key, "user_id")
    if not user_id:
        return None
    await r.expire(key, SESSION_TTL)
    return user_id
