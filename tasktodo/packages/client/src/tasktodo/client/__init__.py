"""TaskTodo Client -- REST API 客户端与客户端状态容器"""

from .api import TaskTodoClient
from .exceptions import (
    ApiAuthError,
    ApiError,
    ApiNotFoundError,
    ApiServerError,
    ApiValidationError,
)
from .models import AppState, StoreError, TaskFilters, TaskPage, TaskRecord, UiModals, UserRecord
from .store import ClientStore, move_within

__all__ = [
    "ApiAuthError",
    "ApiError",
    "ApiNotFoundError",
    "ApiServerError",
    "ApiValidationError",
    "AppState",
    "ClientStore",
    "StoreError",
    "TaskFilters",
    "TaskPage",
    "TaskRecord",
    "TaskTodoClient",
    "UiModals",
    "UserRecord",
    "move_within",
]
