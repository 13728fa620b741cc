import os
import sys
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from loguru._logger import Logger

from cineverse.core.config import settings


def dynamic_formatter(record: Any) -> str:
    base = "[{time:HH:mm:ss}] [{level}] {module}:{function}:{line} - {message}"

    extras = record.get("extra", {})
    if extras:
        base += " (" + ", ".join(f"{key}={value}" for key, value in extras.items())
        base += ")\n"
    else:
        base += "\n"

    if record["exception"]:
        base += "{exception}"

    return base


def dynamic_console_formatter(record: Any) -> str:
    base = "[<green>{time:HH:mm:ss}</green>] <level>[{level}]</level> {module}:{function}:<blue>{line}</blue> - {message}\n"

    if record["exception"]:
        base += "{exception}"

    return base


def _add_file_sink(path: str, level: str, retention: str | None) -> None:
    logger.add(
        path,
        format=dynamic_formatter,
        level=level,
        rotation="00:00",  # Rotate daily at midnight
        compression="zip",
        enqueue=True,
        backtrace=True,
        diagnose=settings.DEBUG,
        retention=retention,
    )


def setup_logger(name: str, log_dir: str | None = None) -> Logger:
    """
    Configure loguru with per-level daily files under ``<log_dir>/<date>/<name>``
    and a colored console sink. Returns the configured logger.
    """
    today = datetime.now(UTC).strftime("%Y-%m-%d")
    log_path = os.path.join(log_dir or settings.LOG_DIR, today, name)
    os.makedirs(log_path, exist_ok=True)

    logger.remove()  # Remove default handler

    if settings.DEBUG:
        _add_file_sink(os.path.join(log_path, "debug.log"), "DEBUG", "7 days")

    _add_file_sink(os.path.join(log_path, "error.log"), "ERROR", "30 days")
    _add_file_sink(os.path.join(log_path, "info.log"), "INFO", "14 days")

    logger.add(
        sys.stderr,
        format=dynamic_console_formatter,
        level="DEBUG" if settings.DEBUG else "INFO",
        enqueue=True,
        backtrace=True,
        diagnose=settings.DEBUG,
        colorize=True,
    )

    return logger  # type: ignore
