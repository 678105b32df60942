"""Gateway 日志初始化

structlog 与标准库 logging 共用一条处理器链：
- dev: 控制台彩色输出
- json: 单行 JSON，供日志采集
凭证类字段（密码、token、Authorization 头）在渲染前统一打码。
Logfire 由 LOGFIRE_SEND_TO_LOGFIRE 控制，默认关闭。
"""

import logging
import os

import structlog
from fastapi import FastAPI
from structlog.types import EventDict, Processor, WrappedLogger

# 出现在事件字段中即打码（键名小写比较）
SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "access_token", "authorization", "jwt_secret"}
)
REDACTED = "***"

# 请求级日志由 LoggingMiddleware 输出，uvicorn 访问日志只保留告警
_QUIET_LOGGERS = ("uvicorn.access",)


def redact_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog 处理器：凭证字段替换为占位符"""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def _shared_processors(log_format: str) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
    return processors


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化日志

    Args:
        log_format: "dev" 或 "json"，缺省读取 TASKTODO_LOG_FORMAT（默认 dev）
        log_level: 日志级别名，缺省读取 TASKTODO_LOG_LEVEL（默认 INFO）
    """
    log_format = (log_format or os.environ.get("TASKTODO_LOG_FORMAT", "dev")).lower()
    level_name = (log_level or os.environ.get("TASKTODO_LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors(log_format)
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logfire(app: FastAPI) -> bool:
    """按需启用 Logfire（需安装 logfire extra 并配置 LOGFIRE_TOKEN）

    Returns:
        是否已启用；初始化失败时降级为本地日志并返回 False
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure()
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
    return True
