"""TaskTodoClient -- REST API 的异步 httpx 封装

每个端点一个协程；非 2xx 响应统一转换为 ApiError 子类，
传输层失败（连接拒绝、超时）转换为可重试的 ApiServerError。
"""

from datetime import date
from typing import Any

import httpx
import structlog
from tasktodo.core.models import Priority

from .exceptions import (
    ApiAuthError,
    ApiError,
    ApiNotFoundError,
    ApiServerError,
    ApiValidationError,
)
from .models import TaskFilters, TaskPage, TaskRecord, UserRecord

log = structlog.get_logger()

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_S = 10.0


def _error_from_response(response: httpx.Response) -> ApiError:
    """将错误响应 {"error": {code, message, details}} 映射为异常"""
    code = ""
    message = response.reason_phrase or "Request failed"
    details: list[dict[str, Any]] = []
    retryable: bool | None = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        code = error.get("code", "")
        message = error.get("message", message)
        details = error.get("details") or []
        retryable = error.get("retryable")

    status = response.status_code
    if status == 400:
        field_errors = {
            d["field"]: d.get("message", "")
            for d in details
            if isinstance(d, dict) and "field" in d
        }
        return ApiValidationError(message, code=code or "VALIDATION_ERROR", field_errors=field_errors)
    if status == 401:
        return ApiAuthError(message, code=code or "UNAUTHORIZED")
    if status == 404:
        return ApiNotFoundError(message, code=code or "NOT_FOUND")
    if status >= 500:
        return ApiServerError(
            message,
            status_code=status,
            code=code or "INTERNAL_ERROR",
            retryable=bool(retryable) if retryable is not None else status == 503,
        )
    return ApiError(message, status_code=status, code=code)


class TaskTodoClient:
    """TaskTodo REST API 客户端"""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: 服务地址
            token: 初始 bearer token（可选）
            timeout_s: 单次请求超时（秒）
            transport: 自定义 transport（测试中传入 MockTransport/ASGITransport）
        """
        self._token = token
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            transport=transport,
        )

    @property
    def token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        self._token = token

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "TaskTodoClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        auth: bool = True,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        if auth and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TransportError as e:
            log.warning("api_transport_error", method=method, path=path, error=str(e))
            raise ApiServerError(
                "Service unreachable", status_code=None, code="TRANSPORT_ERROR"
            ) from e

        if response.is_error:
            error = _error_from_response(response)
            log.debug(
                "api_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                code=error.code,
            )
            raise error
        return response

    # ============ 认证 ============

    async def signup(
        self, email: str, password: str, is_demo: bool = False
    ) -> tuple[str, UserRecord]:
        """注册并返回 (token, user)"""
        payload: dict[str, Any] = {"email": email, "password": password}
        if is_demo:
            payload["is_demo"] = True
        response = await self._request("POST", "/api/auth/signup", json=payload, auth=False)
        body = response.json()
        return body["token"], UserRecord.model_validate(body["data"])

    async def login(self, email: str, password: str) -> tuple[str, UserRecord]:
        """登录并返回 (token, user)"""
        response = await self._request(
            "POST",
            "/api/auth/login",
            json={"email": email, "password": password},
            auth=False,
        )
        body = response.json()
        return body["token"], UserRecord.model_validate(body["data"])

    async def get_current_user(self) -> UserRecord:
        response = await self._request("GET", "/api/auth/user")
        return UserRecord.model_validate(response.json()["data"])

    # ============ 任务 ============

    async def list_tasks(self, filters: TaskFilters | None = None) -> TaskPage:
        filters = filters or TaskFilters()
        response = await self._request("GET", "/api/tasks", params=filters.to_params())
        return TaskPage.model_validate(response.json())

    async def get_task(self, task_id: str) -> TaskRecord:
        response = await self._request("GET", f"/api/tasks/{task_id}")
        return TaskRecord.model_validate(response.json()["data"])

    async def create_task(
        self,
        title: str,
        manual_order: int,
        *,
        description: str | None = None,
        due_date: date | None = None,
        priority: Priority = Priority.MEDIUM,
        is_completed: bool = False,
    ) -> TaskRecord:
        payload = {
            "title": title,
            "description": description,
            "due_date": due_date.isoformat() if due_date else None,
            "priority": Priority(priority).value,
            "is_completed": is_completed,
            "manual_order": manual_order,
        }
        response = await self._request("POST", "/api/tasks", json=payload)
        return TaskRecord.model_validate(response.json()["data"])

    async def update_task(self, task_id: str, **changes: Any) -> TaskRecord:
        """部分更新：仅发送传入的字段"""
        payload: dict[str, Any] = {}
        for field, value in changes.items():
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, Priority):
                value = value.value
            payload[field] = value
        response = await self._request("PATCH", f"/api/tasks/{task_id}", json=payload)
        return TaskRecord.model_validate(response.json()["data"])

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/api/tasks/{task_id}")

    async def reorder_tasks(self, items: list[tuple[str, int]]) -> TaskPage:
        """批量设置 manual_order，返回服务端按新顺序排列的全部任务"""
        payload = {
            "tasks": [{"id": task_id, "manual_order": order} for task_id, order in items]
        }
        response = await self._request("PATCH", "/api/tasks/reorder", json=payload)
        return TaskPage.model_validate(response.json())
