"""
Structured JSONL logs for AgentBoard.

Two streams, written under AGENTBOARD_LOG_DIR (default ~/.agentboard/logs):

- generation.jsonl: one GenerationLogEntry per model call
- orchestration.jsonl: one OrchestrationLogEntry per analysis run

Usage:
    from agentboard.logging import generation_logger, GenerationLogEntry, now_iso

    entry = GenerationLogEntry(timestamp=now_iso(), request_id=..., method="analyze_project")
    generation_logger.info(entry.to_json())

Loggers are opened on first write, so importing this package never touches
the filesystem.
"""

import logging
import threading
from typing import Any

from .config import LogConfig, get_config
from .config import set_config as _set_config
from .entries import GenerationLogEntry, OrchestrationLogEntry, now_iso
from .handlers import create_jsonl_logger

_loggers: dict[str, logging.Logger] = {}
_init_lock = threading.Lock()


def _open_logger(stream: str) -> logging.Logger:
    logger = _loggers.get(stream)
    if logger is not None:
        return logger

    with _init_lock:
        if stream not in _loggers:
            config = get_config()
            path = config.generation_log_path if stream == "generation" else config.orchestration_log_path
            _loggers[stream] = create_jsonl_logger(
                f"agentboard.{stream}",
                path,
                level=config.level,
                max_bytes=config.max_file_size_bytes,
                backup_count=config.backup_count,
            )
        return _loggers[stream]


def set_config(config: LogConfig) -> None:
    """Swap the log config; streams reopen at the new location on next write."""
    with _init_lock:
        _set_config(config)
        for logger in _loggers.values():
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
        _loggers.clear()


class _LazyLogger:
    """Proxy that opens its stream on first use."""

    def __init__(self, stream: str):
        self._stream = stream

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        _open_logger(self._stream).info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        _open_logger(self._stream).warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        _open_logger(self._stream).error(msg, *args, **kwargs)


generation_logger = _LazyLogger("generation")
orchestration_logger = _LazyLogger("orchestration")


__all__ = [
    "generation_logger",
    "orchestration_logger",
    "GenerationLogEntry",
    "OrchestrationLogEntry",
    "now_iso",
    "LogConfig",
    "get_config",
    "set_config",
]
