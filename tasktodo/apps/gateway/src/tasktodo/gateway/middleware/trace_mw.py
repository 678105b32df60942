"""TraceMiddleware -- 为单任务操作绑定 task_id

从 /api/tasks/{task_id} 路径中提取 task_id 绑定到 structlog context，
贯穿该请求内的所有日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 长度
_TASK_ID_LENGTH = 26


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        parts = request.url.path.strip("/").split("/")

        # api / tasks / <task_id>；排除 /api/tasks/reorder 等子路由
        if (
            len(parts) >= 3
            and parts[0] == "api"
            and parts[1] == "tasks"
            and len(parts[2]) == _TASK_ID_LENGTH
        ):
            structlog.contextvars.bind_contextvars(task_id=parts[2])

        return await call_next(request)
