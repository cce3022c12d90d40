"""Logging setup shared by the CLI and embedding applications."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO


class StructuredFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False)


def setup_logging(
    level: str | int = "INFO",
    *,
    structured: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Configure the root logger and return the installed handler.

    Args:
        level: Level name or number for the root logger.
        structured: Emit JSON lines instead of plain text.
        stream: Output stream, ``sys.stderr`` by default.
    """

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )

    logging.basicConfig(level=level, handlers=[handler], force=True)
    return handler


__all__ = ["StructuredFormatter", "setup_logging"]
