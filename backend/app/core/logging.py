import json
import logging
import sys
from datetime import datetime, timezone

# extra= で渡されたときにトップレベルへ出すキー (ログ検索用)
CONTEXT_FIELDS = ("user_id", "language_code", "job")

NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "apscheduler": logging.WARNING,
    "httpx": logging.WARNING,
    "uvicorn.access": logging.INFO,
}


class JSONFormatter(logging.Formatter):
    """1行1レコードのJSONログ"""

    def __init__(self, service: str = "kondo"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        # logger.info(..., extra={"extra_data": {...}})
        extra_data = getattr(record, "extra_data", None)
        if extra_data is not None:
            entry["data"] = extra_data
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(debug: bool = False, service: str = "kondo") -> None:
    """ルートロガーをstdoutのJSON出力に差し替える (API・Scheduler共通)"""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(service=service))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
