"""Process-wide logging configuration.

Outside the ``local`` environment, emits JSON-structured log lines::

    {"severity": "INFO", "message": "...", "logger": "...", "time": "..."}

Locally, uses a human-readable plain-text format.
"""

from __future__ import annotations

import json
import logging
import os
import sys

_LEVEL_MAP = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter emitting one object per record with a severity field."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "severity": _LEVEL_MAP.get(record.levelname, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str | None = None, env: str | None = None) -> None:
    """Install the root handler for CLI and API processes.

    Args:
        level: Log level name; defaults to ``ACTORRUN_LOG_LEVEL`` or ``INFO``.
        env: Environment name; defaults to ``ACTORRUN_ENV`` or ``local``.
    """
    log_level = (level or os.environ.get("ACTORRUN_LOG_LEVEL", "INFO")).upper()
    env_name = (env or os.environ.get("ACTORRUN_ENV", "local")).strip()

    if env_name != "local":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        logging.root.handlers.clear()
        logging.root.addHandler(handler)
        logging.root.setLevel(getattr(logging, log_level, logging.INFO))
    else:
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            stream=sys.stderr,
        )

    # Quieten noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
