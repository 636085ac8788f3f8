"""
Logging configuration for the LectureLab service.

Console output plus rotating files under ``logs/``: a combined log, an
error-only log, and a quota log fed by the chat-quota service logger.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(__file__).parent.parent.parent / "logs"

MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers and the most verbose level we let through
NOISY_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "alembic": logging.INFO,
    "slowapi": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}

QUOTA_LOGGER = "app.services.chat_quota"

# Load balancer health checks, logged at DEBUG only
QUIET_PATHS = frozenset({"/health"})


def _file_handler(log_dir: Path, filename: str, level: int) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def resolve_level(log_level: str, environment: str) -> int:
    """Map a level name to a number. Empty means DEBUG locally and WARNING in production."""
    if not log_level:
        log_level = "WARNING" if environment == "production" else "DEBUG"
    return getattr(logging, log_level.upper(), logging.INFO)


def setup_logging(
    app_name: str = "lecturelab",
    log_level: str = "",
    environment: str = "development",
    enable_console: bool = True,
    enable_file: bool = True,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        app_name: Prefix for the log file names
        log_level: Minimum console level; empty picks one from ``environment``
        environment: Application environment (development, production)
        enable_console: Whether to log to stdout
        enable_file: Whether to write the rotating log files
        log_dir: Directory for the log files, defaults to ``LOG_DIR``

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers do the filtering
    root_logger.handlers.clear()

    if enable_console:
        root_logger.addHandler(_console_handler(resolve_level(log_level, environment)))

    quota_logger = logging.getLogger(QUOTA_LOGGER)
    quota_logger.handlers.clear()
    if enable_file:
        log_dir = log_dir or LOG_DIR
        root_logger.addHandler(_file_handler(log_dir, f"{app_name}.log", logging.DEBUG))
        root_logger.addHandler(_file_handler(log_dir, f"{app_name}_error.log", logging.ERROR))
        quota_logger.addHandler(_file_handler(log_dir, f"{app_name}_quota.log", logging.INFO))

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestLogger:
    """Writes one line per HTTP request, escalating errors and slow calls."""

    def __init__(self, logger: logging.Logger, slow_request_ms: float = 1000.0):
        self.logger = logger
        self.slow_request_ms = slow_request_ms

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        client_ip: str | None = None,
        user_id: str | None = None,
    ):
        parts = [f"{method} {path} -> {status_code} ({duration_ms:.2f}ms)"]
        if client_ip:
            parts.append(f"ip={client_ip}")
        if user_id:
            parts.append(f"user={user_id}")
        message = " | ".join(parts)

        if status_code >= 500:
            self.logger.error(message)
        elif status_code >= 400:
            self.logger.warning(message)
        elif duration_ms >= self.slow_request_ms:
            self.logger.warning("Slow request: %s", message)
        elif path in QUIET_PATHS:
            self.logger.debug(message)
        else:
            self.logger.info(message)
