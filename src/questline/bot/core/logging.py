from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

_CONFIGURED = False

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Serialize log records, including ``extra`` fields, as JSON."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            data[key] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            data["stack_info"] = record.stack_info
        return json.dumps(data, ensure_ascii=False, default=str)


def configure_logging(log_name: str = "questline.log") -> None:
    """Configure root logging handlers once per process."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    log_dir_env = os.getenv("LOG_DIR")
    log_dir = Path(log_dir_env) if log_dir_env else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    use_json = os.getenv("LOG_FORMAT", "").strip().lower() == "json"
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    file_handler = logging.FileHandler(log_dir / log_name, mode="w", encoding="utf-8")
    stream_handler = logging.StreamHandler()

    if use_json:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    file_handler.setFormatter(formatter)
    stream_handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[file_handler, stream_handler],
        force=True,
    )
    # discord.py and motor are chatty at INFO
    logging.getLogger("discord").setLevel(max(level, logging.WARNING))
    logging.getLogger("pymongo").setLevel(max(level, logging.WARNING))

    _CONFIGURED = True


__all__ = ["JsonFormatter", "configure_logging"]
