"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志
"""

import sys
from typing import Any

import structlog
from loguru import logger

from anischedule.core.config import settings


def setup_logging() -> None:
    """Configure application logging with structlog and loguru."""
    _configure_structlog()
    _configure_loguru()

    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def _configure_structlog() -> None:
    """配置 structlog 处理器链。"""
    if settings.ENVIRONMENT == "local":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(settings.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru() -> None:
    """配置 loguru。"""
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if settings.ENVIRONMENT != "local":
        logger.add(
            "logs/anischedule_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="14 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    """将日志级别字符串转换为数字。"""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# 业务事件日志记录器
# ============================================================================


class BusinessEvents:
    """业务事件日志助手类。

    Usage:
        from anischedule.core.infrastructure.logging import BusinessEvents

        BusinessEvents.schedule_built(item_count=12, relevant_count=14, duration_ms=9000)
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def schedule_built(
        cls,
        item_count: int,
        relevant_count: int,
        duration_ms: int,
        **extra: Any,
    ) -> None:
        """记录 schedule 构建完成事件。"""
        cls._log.info(
            "schedule_built",
            event_type="schedule",
            item_count=item_count,
            relevant_count=relevant_count,
            duration_ms=duration_ms,
            **extra,
        )

    @classmethod
    def schedule_build_failed(cls, error: str, **extra: Any) -> None:
        """记录 schedule 构建失败事件。"""
        cls._log.warning(
            "schedule_build_failed",
            event_type="schedule_error",
            error=error,
            **extra,
        )

    @classmethod
    def schedule_served_stale(cls, age_sec: float, error: str, **extra: Any) -> None:
        """记录构建失败后回退到旧 schedule 的事件。"""
        cls._log.warning(
            "schedule_served_stale",
            event_type="degradation",
            age_sec=round(age_sec, 1),
            error=error,
            **extra,
        )

    @classmethod
    def title_skipped(cls, title: str, reason: str, **extra: Any) -> None:
        """记录单个标题被跳过的事件。"""
        cls._log.info(
            "title_skipped",
            event_type="resolve",
            title=title,
            reason=reason,
            **extra,
        )

    @classmethod
    def upstream_throttled(cls, title: str, **extra: Any) -> None:
        """记录上游 429 事件。"""
        cls._log.warning(
            "upstream_throttled",
            event_type="rate_limit",
            title=title,
            **extra,
        )

    @classmethod
    def token_refreshed(cls, expires_in_sec: int, **extra: Any) -> None:
        """记录 OAuth token 刷新事件。"""
        cls._log.info(
            "token_refreshed",
            event_type="auth",
            expires_in_sec=expires_in_sec,
            **extra,
        )
