import logging
import sys
import json
from datetime import datetime
from typing import Any, Dict

# Keys whose values never reach the log output
SENSITIVE_KEYS = frozenset({"private_key", "privatekey", "api_key", "secret", "token"})


def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
    redacted = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_KEYS:
            redacted[key] = "[REDACTED]"
        elif isinstance(value, dict):
            redacted[key] = _redact(value)
        else:
            redacted[key] = value
    return redacted


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add extra attributes if provided
        if hasattr(record, "extra_data"):
            log_entry.update(_redact(record.extra_data))

        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Returns a structured logger instance."""
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)

        # In production, use JSON. In dev, use standard format.
        try:
            from .config import settings
            production = settings.is_production()
            lvl = settings.LOG_LEVEL.upper()
        except (ImportError, AttributeError):
            production = False
            lvl = "INFO"

        if production:
            handler.setFormatter(StructuredFormatter())
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.setLevel(lvl)
        logger.propagate = False

    return logger
