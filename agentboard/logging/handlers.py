"""Rotating JSON-lines output for the structured board logs."""

import json
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path


class JSONLineFormatter(logging.Formatter):
    """
    Render each record as a single JSON object.

    Log entries arrive already serialized (entry.to_json()) and are compacted
    onto one line; any other message gets a timestamp/level/logger envelope.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            payload = None

        if not isinstance(payload, dict):
            payload = {
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": message,
            }
        return json.dumps(payload, default=str, separators=(",", ":"))


class JSONLRotatingHandler(RotatingFileHandler):
    """Size-rotated .jsonl file whose directory is created on demand."""

    def __init__(self, path: Path, max_bytes: int, backup_count: int):
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8", delay=True)
        self.setFormatter(JSONLineFormatter())


def create_jsonl_logger(
    name: str,
    path: Path,
    level: str = "INFO",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Return logger `name` writing only to `path`, replacing earlier handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))

    while logger.handlers:
        old = logger.handlers[0]
        logger.removeHandler(old)
        old.close()

    logger.addHandler(JSONLRotatingHandler(path, max_bytes, backup_count))
    # Structured entries stay out of the console
    logger.propagate = False
    return logger
