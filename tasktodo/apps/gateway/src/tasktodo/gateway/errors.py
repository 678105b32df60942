"""异常 -> HTTP 响应映射

Service 层抛出类型化异常，此处统一转换为
{"error": {"code", "message", "details"?}} 响应体。
未预期异常由 LoggingMiddleware 兜底为通用 500。
"""

import aiosqlite
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from tasktodo.core.exceptions import (
    AuthenticationError,
    ConflictError,
    FieldError,
    NotFoundError,
    PersistenceError,
    TaskTodoError,
    ValidationFailedError,
)

log = structlog.get_logger()

# 异常类型 -> HTTP 状态码（按 MRO 顺序匹配）
_STATUS_BY_ERROR: list[tuple[type[TaskTodoError], int]] = [
    (ValidationFailedError, 400),
    (ConflictError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (PersistenceError, 503),
]

# request 校验错误 loc 中的来源前缀，不属于字段名
_LOC_PREFIXES = {"body", "query", "path", "header", "cookie"}

GENERIC_SERVER_ERROR_MESSAGE = "Internal Server Error"


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[FieldError] | None = None,
    retryable: bool | None = None,
) -> JSONResponse:
    """构造统一错误响应"""
    error: dict = {"code": code, "message": message}
    if details:
        error["details"] = [d.to_dict() for d in details]
    if retryable is not None:
        error["retryable"] = retryable
    return JSONResponse(status_code=status_code, content={"error": error})


def internal_error_response() -> JSONResponse:
    """通用 500 响应，不泄露任何内部细节"""
    return error_response(500, "INTERNAL_ERROR", GENERIC_SERVER_ERROR_MESSAGE)


def _field_errors(exc: RequestValidationError) -> list[FieldError]:
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in _LOC_PREFIXES]
        details.append(FieldError(".".join(loc) or "body", err.get("msg", "Invalid value")))
    return details


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体/查询参数校验失败 -> 400 + 字段级信息"""
    details = _field_errors(exc)
    log.info("request_validation_failed", fields=[d.field for d in details])
    return error_response(400, ValidationFailedError.code, "Invalid request", details)


async def handle_tasktodo_error(request: Request, exc: TaskTodoError) -> JSONResponse:
    """类型化业务异常 -> 对应状态码"""
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code == 500:
        log.error("unmapped_domain_error", error_type=type(exc).__name__, error=exc.message)
        return internal_error_response()

    details = exc.details if isinstance(exc, ValidationFailedError) else None
    retryable = True if exc.recoverable else None
    return error_response(status_code, exc.code, exc.message, details, retryable)


async def handle_operational_error(
    request: Request, exc: aiosqlite.OperationalError
) -> JSONResponse:
    """SQLite 锁等待超时 / 磁盘 IO 等瞬时故障 -> 503 可重试"""
    log.error("store_operational_error", error=str(exc))
    return error_response(
        503,
        PersistenceError.code,
        "Storage temporarily unavailable, please retry",
        retryable=True,
    )


def install_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(TaskTodoError, handle_tasktodo_error)
    app.add_exception_handler(aiosqlite.OperationalError, handle_operational_error)
