"""
Logging setup for the API process.

Production writes one JSON object per line; local runs and tests use plain
text. Services attach structured context with
``extra={"extra_fields": {...}}``; UUIDs and datetimes in it are rendered
with str().
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.config import settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Request lines come from the middleware in main.py.
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with the deployment environment."""

    def __init__(self, environment: str = "development"):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": self.environment,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Context never replaces the keys above.
        for key, value in (getattr(record, "extra_fields", None) or {}).items():
            log_data.setdefault(key, value)

        return json.dumps(log_data, default=str)


def use_json_logs() -> bool:
    return settings.LOG_FORMAT == "json" or settings.ENVIRONMENT == "production"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once at startup.

    ``level`` overrides LOG_LEVEL; unknown names fall back to INFO.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    if use_json_logs():
        formatter: logging.Formatter = JSONFormatter(environment=settings.ENVIRONMENT)
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
