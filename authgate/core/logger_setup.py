"""日志配置模块

提供统一的 loguru 日志配置。

Examples:
    基础使用::

        from authgate.core.logger_setup import setup_logger

        setup_logger("DEBUG")
        logger.info("应用启动")
"""

from __future__ import annotations

import sys

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logger(level: str = "INFO", format_string: str | None = None) -> None:
    """配置 loguru 的 stderr 输出.

    Args:
        level: 日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        format_string: 自定义格式字符串（可选）
    """
    # 移除默认 handler
    logger.remove()

    logger.add(
        sys.stderr,
        format=format_string or DEFAULT_FORMAT,
        level=level,
        colorize=True,
    )


def mask_session_id(session_id: str | None) -> str:
    """日志中只输出会话 ID 的前 8 位."""
    if not session_id:
        return "-"
    return f"{session_id[:8]}…"
