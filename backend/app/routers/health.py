from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import check_db_connection
from app.core.redis import check_redis_connection

router = APIRouter(tags=["health"])


@router.get("/health")
@router.get("/api/health")
async def health_check():
    """DB / Redis の疎通確認 (DB不通時のみ503)"""
    db_ok = check_db_connection()
    redis_ok = await check_redis_connection()

    body = {
        "service": settings.SITE_NAME,
        "status": "ok" if (db_ok and redis_ok) else "degraded",
        "db": "connected" if db_ok else "disconnected",
        "redis": "connected" if redis_ok else "disconnected",
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)
