"""
Logging setup.

- Production: one JSON object per line on stderr
- Otherwise: short human-readable lines
- LOG_LEVEL / LOG_FORMAT override the defaults
"""

import json
import logging
import sys
from datetime import datetime, timezone

from taskflow.core.config import Settings

EXTRA_FIELDS = ("method", "path", "status", "duration_ms", "request_id", "user_id", "workspace_id")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now().strftime("%H:%M:%S")
        duration = getattr(record, "duration_ms", None)
        dur_str = f" [{duration:.0f}ms]" if duration is not None else ""
        base = f"{ts} {record.levelname:<8} {record.name}: {record.getMessage()}{dur_str}"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(settings: Settings) -> None:
    level_name = settings.log_level or ("INFO" if settings.is_production else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    fmt = settings.log_format or ("json" if settings.is_production else "readable")
    formatter = JSONFormatter() if fmt == "json" else ReadableFormatter()

    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("sqlalchemy.engine", "uvicorn.access", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("taskflow").info("Logging configured: level=%s format=%s", level_name, fmt)
