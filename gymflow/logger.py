import json  # JSON serialization
import logging
from datetime import datetime, timezone

# LogRecord attributes copied into the payload when passed via ``extra=``
CONTEXT_FIELDS = (
    "member_id",
    "subscription_id",
    "scanned_value",
    "method",
    "status",
    "reason_code",
)


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Send JSON lines to stderr; SQLAlchemy engine chatter stays at WARNING."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


__all__ = ["JsonFormatter", "setup_logging", "CONTEXT_FIELDS"]
