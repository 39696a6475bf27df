import json
import logging
import time
from collections import Counter, deque
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def setup_logging(log_level: str = "INFO", log_format: str = "text"):
    """
    Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: text or json
    """
    if log_format.lower() == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info(f"Logging configured: level={log_level}, format={log_format}")


class JsonFormatter(logging.Formatter):
    """One JSON object per log line, extra fields included"""

    def format(self, record):
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_entry:
                continue
            try:
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False)


class ErrorTracker:
    """In-process error counters and a short history of recent errors"""

    def __init__(self, max_history: int = 100):
        self.error_counts = Counter()
        self.last_errors = deque(maxlen=max_history)

    def track_error(
        self, error_type: str, error_message: str, context: Dict[str, Any] = None
    ):
        self.error_counts[error_type] += 1
        self.last_errors.append(
            {
                "timestamp": time.time(),
                "type": error_type,
                "message": error_message,
                "context": context or {},
            }
        )

        logger.debug(
            f"Error tracked: {error_type}",
            extra={
                "error_type": error_type,
                "total_count": self.error_counts[error_type],
            },
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "error_counts": dict(self.error_counts),
            "total_errors": sum(self.error_counts.values()),
            "unique_error_types": len(self.error_counts),
            "last_errors": list(self.last_errors)[-10:],
        }

    def reset_stats(self):
        self.error_counts.clear()
        self.last_errors.clear()
        logger.info("Error tracking stats reset")


error_tracker = ErrorTracker()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_business_event(
    event: str,
    entity_type: str,
    entity_id: Any,
    details: Optional[Dict[str, Any]] = None,
):
    """
    Log a domain event (club created, mandat activated, tables distributed...)

    Args:
        event: Event name
        entity_type: club, mandat, gala, reunion...
        entity_id: Identifier of the entity
        details: Extra context
    """
    logger.info(
        f"Business event: {event}",
        extra={
            "event": event,
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "details": details or {},
            "category": "business_event",
        },
    )
