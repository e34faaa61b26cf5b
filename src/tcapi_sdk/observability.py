import json
import logging
from datetime import UTC, datetime
from typing import Any

from tcapi_sdk.config import settings

_LOGGING_CONFIGURED = False


class JsonLogFormatter(logging.Formatter):
    _extra_fields = (
        "event_name",
        "action",
        "service",
        "host",
        "request_timestamp",
        "credential_scope",
        "method",
        "url",
        "status",
        "latency_ms",
        "configured_level",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in self._extra_fields:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def configure_logging(level_name: str | None = None) -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    configured = level_name or settings.log_level
    root_logger = logging.getLogger()
    level = getattr(logging, configured.upper(), None)
    if not isinstance(level, int):
        logging.getLogger("tcapi.logging").warning(
            "invalid_log_level_fallback",
            extra={
                "event_name": "invalid_log_level_fallback",
                "configured_level": configured,
            },
        )
        level = logging.INFO

    root_logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    root_logger.handlers = [handler]

    _LOGGING_CONFIGURED = True
