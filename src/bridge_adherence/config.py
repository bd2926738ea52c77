import logging
import os
from dataclasses import dataclass

LOG_FORMATS: tuple[str, ...] = ("json", "text")


@dataclass(frozen=True)
class Config:
    log_format: str = "json"
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls) -> "Config":
        log_format = os.environ.get("BRIDGE_LOG_FORMAT", "json").strip().lower()
        if log_format not in LOG_FORMATS:
            raise RuntimeError(
                f"BRIDGE_LOG_FORMAT must be one of: {', '.join(LOG_FORMATS)}"
            )

        level_name = os.environ.get("BRIDGE_LOG_LEVEL", "INFO").strip().upper()
        log_level = logging.getLevelName(level_name)
        if not isinstance(log_level, int):
            raise RuntimeError(f"BRIDGE_LOG_LEVEL is not a known level: {level_name}")

        return cls(log_format=log_format, log_level=log_level)
