# app/config/logging.py

import json
import logging
from datetime import datetime, timezone

from app.core.context import actor_id_ctx, correlation_id_ctx

# Structured fields passed via `extra=` that are copied into the JSON line.
EXTRA_FIELDS = (
    "kind",
    "record_id",
    "action",
    "outcome",
    "error",
    "from_stage",
    "to_stage",
    "custodian",
    "department",
    "job_level",
    "version",
    "current_version",
    "method",
    "path",
    "status_code",
    "duration_ms",
)


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "correlation_id": correlation_id_ctx.get(),
            "actor_id": getattr(record, "actor_id", None) or actor_id_ctx.get(),
        }
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_record[name] = getattr(record, name)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(log_level: str):
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [h for h in root_logger.handlers if not isinstance(h.formatter, JsonFormatter)]
    root_logger.addHandler(handler)
