"""レート制限 (slowapi)。ログイン中はセッション単位、未ログインはIP単位で数える"""
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings


def get_client_ip(request: Request) -> str:
    """プロキシ経由なら X-Forwarded-For の先頭"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def get_rate_limit_key(request: Request) -> str:
    # サマリー再生成はユーザーごとに制限したいので session_id を優先
    session_id = request.cookies.get("session_id")
    if session_id:
        return f"session:{session_id}"
    return f"ip:{get_client_ip(request)}"


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["100/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please wait a moment and try again.",
            "retry_after": exc.detail,
        },
    )


SUMMARY_REFRESH_RATE_LIMIT = "5/minute"
TEST_EMAIL_RATE_LIMIT = "3/minute"
UNSUBSCRIBE_RATE_LIMIT = "10/minute"  # トークン総当たり対策
