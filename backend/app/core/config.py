from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # データベース
    DATABASE_URL: str = "mysql+pymysql://dojo:dojopassword@db:3306/dojo?charset=utf8mb4"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # セキュリティ (配信停止トークンの暗号化キー, 64桁hex)
    AES_KEY: str = ""

    # Resend
    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = "Kondo <noreply@kondoai.com>"
    RESEND_WEBHOOK_SECRET: str = ""

    # サービス設定
    SITE_URL: str = "https://kondoai.com"
    SITE_NAME: str = "Kondo"
    ALLOWED_ORIGINS: str = "http://localhost:8000,http://localhost:3000"

    # セッション
    SESSION_TIMEOUT_MINUTES: int = 60

    # レート制限 (複数プロセス時は redis:// を指定)
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # 言語
    DEFAULT_LANGUAGE_CODE: str = "ja"

    # デイリーサマリー生成のバッチ制御
    SUMMARY_LANGUAGE_BATCH_SIZE: int = 2
    SUMMARY_LANGUAGE_BATCH_PAUSE: float = 1.0
    SUMMARY_BOOKMARK_BATCH_SIZE: int = 10
    SUMMARY_BOOKMARK_BATCH_PAUSE: float = 0.1

    # ダイジェストメール
    DIGEST_MAX_RESPONSES: int = 6
    UNSUBSCRIBE_TOKEN_TTL_DAYS: int = 30

    # スケジューラ
    SCHEDULER_TIMEZONE: str = "UTC"
    SUMMARY_CRON_HOUR: int = 4
    DIGEST_CRON_HOUR: int = 6

    # 環境
    ENV: str = "development"
    DEBUG: bool = False

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
