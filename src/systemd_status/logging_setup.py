import json
import logging
import os
import platform
import sys
import threading
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from uuid import uuid4

MAX_LOG_FILES = 5


class CategoryFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "category"):
            record.category = "general"
        return True


class ContextFilter(logging.Filter):
    def __init__(self, *, session_id: str, app_version: str) -> None:
        super().__init__()
        self._session_id = session_id
        self._app_version = app_version
        self._hostname = platform.node()
        self._pid = os.getpid()
        self._process_start = time.time()

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = self._session_id
        if not hasattr(record, "app_version"):
            record.app_version = self._app_version
        if not hasattr(record, "hostname"):
            record.hostname = self._hostname
        if not hasattr(record, "pid"):
            record.pid = self._pid
        if not hasattr(record, "uptime_seconds"):
            record.uptime_seconds = max(0.0, time.time() - self._process_start)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload = {
            "timestamp": timestamp,
            "level": record.levelname,
            "category": getattr(record, "category", "general"),
            "logger": record.name,
            "message": record.getMessage(),
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
            "thread_name": record.threadName,
            "session_id": getattr(record, "session_id", ""),
            "app_version": getattr(record, "app_version", ""),
            "hostname": getattr(record, "hostname", ""),
            "pid": getattr(record, "pid", record.process),
            "uptime_seconds": round(getattr(record, "uptime_seconds", 0.0), 3),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _install_exception_hooks() -> None:
    logger = logging.getLogger(__name__)

    def handle_exception(exc_type, exc, tb) -> None:
        if exc_type in (KeyboardInterrupt, SystemExit):
            logger.info(
                "Shutdown requested",
                extra={"category": "shutdown"},
            )
            return
        logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc, tb),
            extra={"category": "fatal"},
        )

    sys.excepthook = handle_exception

    def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
        if args.exc_type in (KeyboardInterrupt, SystemExit):
            logger.info(
                "Thread shutdown requested",
                extra={"category": "shutdown"},
            )
            return
        logger.critical(
            "Unhandled thread exception in %s",
            getattr(args.thread, "name", "<unknown>"),
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            extra={"category": "fatal"},
        )

    threading.excepthook = _thread_excepthook


def _resolve_level(level: str, default: int) -> int:
    name = str(level).upper()
    return logging._nameToLevel.get(name, default)


def _configure_handler(
    handler: logging.Handler,
    formatter: logging.Formatter,
    level: int,
    context_filter: ContextFilter,
) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.setLevel(level)
    handler.addFilter(CategoryFilter())
    handler.addFilter(context_filter)
    return handler


def setup_logging(
    log_file: str,
    *,
    log_level: str = "INFO",
    log_console_level: str = "WARNING",
    log_console_enabled: bool = True,
    log_max_bytes: int = 1_000_000,
    log_backup_count: int = 3,
    app_version: str | None = None,
) -> None:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        try:
            handler.close()
        finally:
            root_logger.removeHandler(handler)

    base_path = Path(log_file)
    if not base_path.suffix:
        base_path = base_path.with_suffix(".log")
    json_path = base_path.with_suffix(".jsonl")

    session_id = uuid4().hex
    context_filter = ContextFilter(
        session_id=session_id,
        app_version=str(app_version or ""),
    )
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(category)s %(name)s %(threadName)s %(message)s"
    )
    resolved_level = _resolve_level(log_level, logging.INFO)
    resolved_console_level = _resolve_level(log_console_level, logging.WARNING)
    effective_backup_count = min(MAX_LOG_FILES, max(0, log_backup_count))

    handlers: list[logging.Handler] = []
    file_error: OSError | None = None
    try:
        base_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _configure_handler(
                RotatingFileHandler(
                    base_path,
                    maxBytes=log_max_bytes,
                    backupCount=effective_backup_count,
                    encoding="utf-8",
                ),
                formatter,
                resolved_level,
                context_filter,
            )
        )
        handlers.append(
            _configure_handler(
                RotatingFileHandler(
                    json_path,
                    maxBytes=log_max_bytes,
                    backupCount=effective_backup_count,
                    encoding="utf-8",
                ),
                JsonFormatter(),
                resolved_level,
                context_filter,
            )
        )
    except OSError as exc:
        for handler in handlers:
            handler.close()
        handlers = [
            _configure_handler(
                logging.StreamHandler(), formatter, resolved_level, context_filter
            )
        ]
        file_error = exc

    if log_console_enabled and file_error is None:
        handlers.append(
            _configure_handler(
                logging.StreamHandler(),
                formatter,
                resolved_console_level,
                context_filter,
            )
        )

    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)

    logging.captureWarnings(True)
    _install_exception_hooks()

    logging.getLogger("PIL").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    if file_error is not None:
        logger.warning(
            "Failed to initialize file logging: %s",
            file_error,
            extra={"category": "startup"},
        )
    logger.info(
        "Logging initialized",
        extra={
            "category": "startup",
            "log_file": str(base_path),
            "json_log_file": str(json_path),
            "session_id": session_id,
        },
    )
    if effective_backup_count != log_backup_count:
        logger.warning(
            "log_backup_count capped at %s (requested %s)",
            MAX_LOG_FILES,
            log_backup_count,
        )
