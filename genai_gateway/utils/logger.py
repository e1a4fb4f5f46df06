# -----------------------------------------------------------------------------
# genai_gateway/utils/logger.py — Structured logger shared by the gateway
# -----------------------------------------------------------------------------
# Messages are event names ("llm_used", "provider_failed", ...); details go in
# `extra=`. JSON output by default, LOG_FORMAT=console for local runs.
# -----------------------------------------------------------------------------

import json
import logging
import sys
from datetime import datetime, timezone

from genai_gateway.core.config import get_settings

LOGGER_NAME = "genai_gateway"

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event, extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        entry.update(_extra_fields(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        extras = " ".join(f"{k}={v}" for k, v in _extra_fields(record).items())
        line = f"{ts} {record.levelname:8s} {record.getMessage()}"
        if extras:
            line = f"{line} {extras}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logger() -> logging.Logger:
    settings = get_settings()
    log = logging.getLogger(LOGGER_NAME)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            ConsoleFormatter() if settings.log_format == "console" else StructuredFormatter()
        )
        log.addHandler(handler)
    log.setLevel(getattr(logging, settings.log_level, logging.INFO))
    return log


logger = configure_logger()
