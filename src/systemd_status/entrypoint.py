from __future__ import annotations

import logging
import sys

from .config import AppConfig, build_config
from .errors import SetupError
from .logging_setup import setup_logging
from .tray_app import run_tray
from . import __version_label__

LOGGER = logging.getLogger(__name__)


def _reject_extra_args(args: list[str]) -> None:
    if not args:
        return
    raise SystemExit(
        "Usage: run systemd-status-tray without arguments.\n"
        f"Arguments received: {' '.join(args)}"
    )


def _setup_logging(config: AppConfig) -> None:
    setup_logging(
        config.log_file,
        log_level=config.log_level,
        log_console_level=config.log_console_level,
        log_console_enabled=config.log_console_enabled,
        log_max_bytes=config.log_max_bytes,
        log_backup_count=config.log_backup_count,
        app_version=__version_label__,
    )


def main() -> int:
    args = [arg for arg in sys.argv[1:] if arg]
    _reject_extra_args(args)

    config = build_config()
    _setup_logging(config)
    LOGGER.info(
        "systemd-status-tray %s starting",
        __version_label__,
        extra={"category": "startup"},
    )
    try:
        run_tray(config)
    except SetupError as exc:
        LOGGER.error("Startup failed: %s", exc, extra={"category": "startup"})
        raise SystemExit(f"systemd-status-tray: {exc}") from exc
    except Exception as exc:
        LOGGER.exception("Failed to start tray: %s", exc, extra={"category": "startup"})
        raise SystemExit(
            "Failed to start tray UI. Verify dependencies (pystray/Pillow) "
            "and that a system tray is available."
        ) from exc
    LOGGER.info("systemd-status-tray stopped", extra={"category": "shutdown"})
    return 0
