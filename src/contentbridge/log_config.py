# contentbridge/log_config.py
"""Logging configuration for the contentbridge library using Loguru.

Every module logs through the shared Loguru ``logger`` re-exported here.
Decoders log per-row failures at WARNING and page summaries at DEBUG; field
level details such as skipped unknown fields go to TRACE.
"""

import sys

from loguru import logger

from .config import get_settings

__all__ = ["LOG_FORMAT", "configure_logging", "logger"]

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str | None = None, sink=sys.stderr):
    """
    Replaces every Loguru handler with a single one at ``level`` on ``sink``.

    Args:
        level: Minimum level, e.g. "DEBUG" or "warning". Defaults to the
            ``CONTENTBRIDGE_LOG_LEVEL`` setting.
        sink: Anything Loguru accepts as a sink: a stream, a path such as
            "contentbridge.log", or a callable.
    """
    level = (level or get_settings().log_level).upper()
    logger.remove()
    logger.add(
        sink,
        level=level,
        format=LOG_FORMAT,
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=level in ("TRACE", "DEBUG"),
    )
    logger.debug(f"contentbridge logging configured: level={level}, sink={sink}")
