from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.routers import health, summary, email, community, webhooks_resend

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションライフサイクル管理"""
    setup_logging(debug=settings.DEBUG, service="api")
    logger.info("アプリケーション起動")
    yield
    logger.info("アプリケーション終了")


app = FastAPI(
    title=settings.SITE_NAME,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# レート制限設定
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- バリデーションエラーを1行の英文メッセージに整形 ---
_FIELD_LABELS = {
    "email": "Email address",
    "frequency": "Frequency",
    "language": "Language",
    "language_code": "Language code",
    "token": "Token",
    "force_refresh": "force_refresh",
    "all_languages": "all_languages",
    "page": "Page",
    "limit": "Limit",
    "min_imports": "Minimum imports",
}


def _translate_error(err: dict) -> str:
    t = err.get("type", "")
    ctx = err.get("ctx", {})
    loc = err.get("loc", [])
    field = str(loc[-1]) if loc else ""
    label = _FIELD_LABELS.get(field, field)

    if "email" in t or ("value" in t and "email" in err.get("msg", "").lower()):
        return f"{label} must be a valid email address"
    if t == "missing":
        return f"{label} is required"
    if t == "literal_error":
        return f"{label} must be one of {ctx.get('expected', '')}"
    if t == "string_too_long":
        return f"{label} must be at most {ctx.get('max_length', '')} characters"
    if t in ("int_parsing", "int_type"):
        return f"{label} must be a number"
    if t == "greater_than_equal":
        return f"{label} must be at least {ctx.get('ge', '')}"
    if t == "less_than_equal":
        return f"{label} must be at most {ctx.get('le', '')}"
    if t == "bool_parsing":
        return f"{label} must be true or false"
    return f"{label}: invalid value"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [_translate_error(e) for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": "; ".join(messages)})


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ルーター登録
app.include_router(health.router)
app.include_router(summary.router)
app.include_router(email.router)
app.include_router(community.router)
app.include_router(webhooks_resend.router)
