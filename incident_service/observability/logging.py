from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone

# LogRecord attributes that are not user-supplied `extra=` fields.
_RESERVED_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record, for Loki/ELK style ingestion.

    {"ts":"2026-10-19T10:00:00Z","level":"INFO","logger":"incident_service.enrichment.coordinator",
     "thread":"enrichment_0","msg":"incident enriched | id=... attempt=1 ..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }

        for key, val in record.__dict__.items():
            if key not in _RESERVED_FIELDS and not key.startswith("_"):
                payload[key] = val

        if record.exc_info:
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_logs: bool | None = None) -> None:
    """
    Configures the root logger.

    Args:
        level: INFO, DEBUG, WARNING or ERROR.
        json_logs: True for JSON, False for plain text, None to decide from
                   LOG_FORMAT=json or whether stderr is a terminal.
    """
    if json_logs is None:
        log_format = os.getenv("LOG_FORMAT", "").lower()
        json_logs = log_format == "json" or not os.isatty(2)

    handler = logging.StreamHandler()

    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s")
        )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
