"""Loguru configuration for bitperm.

The core bit operations never log. Logging is used by the permission
catalog and the CLI, each bound to its own component name so sinks can
filter on ``record["extra"]["component"]``.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from loguru import logger

__all__ = [
    "configure_logging",
    "get_logger",
]

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    *,
    level: str = "WARNING",
    log_file: Path | None = None,
    enable_console: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    level
        Minimum log level (DEBUG, INFO, WARNING, ...)
    log_file
        Optional JSONL file sink (serialized records)
    enable_console
        Enable stderr output

    Example
    -------
    >>> from bitperm.observability.loguru_config import configure_logging
    >>> configure_logging(level="DEBUG")
    """
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    # Remove default handler
    logger.remove()

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            backtrace=False,
            diagnose=False,
            filter=_with_component,
        )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{message}",
            level=level,
            serialize=True,  # JSON lines
            backtrace=True,
            diagnose=False,
            filter=_with_component,
        )

    logger.bind(component="bitperm").debug("Logging configured", level=level, log_file=str(log_file or ""))


def get_logger(component: str = "bitperm") -> Any:
    """Get logger instance bound to ``component``.

    Parameters
    ----------
    component
        Component name (catalog, cli)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


def _with_component(record: dict[str, Any]) -> bool:
    # Records logged through the bare logger have no component yet
    record["extra"].setdefault("component", "bitperm")
    return True
