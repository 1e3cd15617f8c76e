"""Where the structured logs live and how large they grow."""

import os
from dataclasses import dataclass, field
from pathlib import Path

MEGABYTE = 1024 * 1024


def _default_log_dir() -> Path:
    return Path(os.environ.get("AGENTBOARD_LOG_DIR") or Path.home() / ".agentboard" / "logs")


def _default_max_bytes() -> int:
    raw = os.environ.get("AGENTBOARD_LOG_MAX_SIZE_MB", "")
    return int(raw) * MEGABYTE if raw.isdigit() else 10 * MEGABYTE


@dataclass
class LogConfig:
    """Directory, rotation and level for the generation and orchestration logs."""

    log_dir: Path = field(default_factory=_default_log_dir)
    level: str = field(default_factory=lambda: os.environ.get("AGENTBOARD_LOG_LEVEL", "INFO"))
    max_file_size_bytes: int = field(default_factory=_default_max_bytes)
    backup_count: int = 5

    @property
    def generation_log_path(self) -> Path:
        return self.log_dir / "generation.jsonl"

    @property
    def orchestration_log_path(self) -> Path:
        return self.log_dir / "orchestration.jsonl"


_config: LogConfig | None = None


def get_config() -> LogConfig:
    """Active log config, built from the environment on first call."""
    global _config
    if _config is None:
        _config = LogConfig()
    return _config


def set_config(config: LogConfig) -> None:
    global _config
    _config = config
