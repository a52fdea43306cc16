import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

STRUCTURED_FIELDS = ("component", "event", "why", "data", "transition", "from_state", "to_state")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base: Dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Include common structured fields if provided via extra
        for key in STRUCTURED_FIELDS:
            if hasattr(record, key):
                base[key] = getattr(record, key)
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def _has_configured_parent(logger: logging.Logger) -> bool:
    parent = logger.parent
    while parent is not None and parent is not logging.root:
        if parent.handlers:
            return True
        parent = parent.parent
    return False


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    # Children of a logger set up by configure_logging propagate to it
    if logger.handlers or _has_configured_parent(logger):
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_decision(
    logger: logging.Logger,
    component: str,
    event: str,
    why: str,
    data: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    extra = {
        "component": component,
        "event": event,
        "why": why,
        "data": data or {},
    }
    extra.update({key: value for key, value in fields.items() if key in STRUCTURED_FIELDS})
    logger.log(level, event, extra=extra)
