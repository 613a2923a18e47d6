from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Context variable to attach assessment_id to every log record.
_ASSESSMENT_ID: ContextVar[Optional[str]] = ContextVar("assessment_id", default=None)

_RESERVED = {
    "msg", "args", "levelname", "levelno", "name", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "processName", "process",
    "taskName", "assessment_id", "message",
}


def set_assessment_id(assessment_id: Optional[str]) -> None:
    # Set assessment_id in context for the current flow.
    _ASSESSMENT_ID.set(assessment_id)


def clear_assessment_id() -> None:
    _ASSESSMENT_ID.set(None)


class AssessmentIdFilter(logging.Filter):
    # Adds assessment_id to log records.
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "assessment_id", None) is None:
            record.assessment_id = _ASSESSMENT_ID.get()
        return True


class JsonFormatter(logging.Formatter):
    # Structured JSON formatter for logs.
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "assessment_id": getattr(record, "assessment_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        # Extras passed through extra={}
        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            try:
                json.dumps(value, ensure_ascii=False)
                payload[key] = value
            except TypeError:
                payload[key] = str(value)

        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_logs: bool = True) -> None:
    # Configure root logging once.
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(AssessmentIdFilter())

    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s assessment_id=%(assessment_id)s %(message)s"
        ))

    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
