"""LoggingMiddleware -- 请求级日志 + 未预期异常兜底

为每个 HTTP 请求生成 request_id，绑定到 structlog contextvars。
路由内未被异常处理器接住的异常在此转换为通用 500，内部细节只进日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

from ..errors import internal_error_response


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件 -- 为每个请求生成 request_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())

        # 绑定 request_id 到 structlog context
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        await log.ainfo("request_started")

        try:
            response = await call_next(request)
        except Exception:
            log.exception("unhandled_exception")
            response = internal_error_response()

        await log.ainfo(
            "request_completed",
            status_code=response.status_code,
        )

        # 在响应头中返回 request_id
        response.headers["X-Request-ID"] = request_id
        return response
