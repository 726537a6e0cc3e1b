from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

APP_ID = "com.micksayson.systemd-status"
APP_DIR_NAME = "systemd-status"


def get_user_data_dir() -> Path:
    return Path.home() / ".local" / "state" / APP_DIR_NAME


def get_user_log_dir() -> Path:
    return get_user_data_dir() / "logs"


@dataclass(frozen=True)
class AppConfig:
    poll_interval_seconds: int = 60
    query_timeout_seconds: float = 1.0
    status_refresh_seconds: float = 2.0
    log_file: str = ""
    log_level: str = "INFO"
    log_console_level: str = "WARNING"
    log_console_enabled: bool = True
    log_max_bytes: int = 1_000_000
    log_backup_count: int = 3


def validate_config(config: AppConfig) -> None:
    if config.poll_interval_seconds <= 0:
        raise ValueError("poll_interval_seconds must be > 0")
    if config.query_timeout_seconds <= 0:
        raise ValueError("query_timeout_seconds must be > 0")
    if config.query_timeout_seconds >= config.poll_interval_seconds:
        raise ValueError("query_timeout_seconds must be < poll_interval_seconds")
    if config.status_refresh_seconds <= 0:
        raise ValueError("status_refresh_seconds must be > 0")
    if not config.log_file:
        raise ValueError("log_file is required")
    if config.log_max_bytes <= 0:
        raise ValueError("log_max_bytes must be > 0")
    if config.log_backup_count < 0:
        raise ValueError("log_backup_count must be >= 0")


def build_config() -> AppConfig:
    config = AppConfig(log_file=str(get_user_log_dir() / "systemd-status.log"))
    validate_config(config)
    return config
