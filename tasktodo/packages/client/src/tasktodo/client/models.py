"""Client 侧数据模型

所有模型均为 frozen：状态只能通过 ClientStore 的 action 整体替换，
不允许视图代码原地修改。
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from tasktodo.core.config import DEFAULT_LIST_OFFSET
from tasktodo.core.models import Priority, SessionMode, SortField, SortOrder


class UserRecord(BaseModel):
    """API 返回的用户"""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    is_demo: bool = False
    created_at: datetime
    updated_at: datetime


class TaskRecord(BaseModel):
    """API 返回的任务"""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    title: str
    description: str | None = None
    due_date: date | None = None
    priority: Priority = Priority.MEDIUM
    is_completed: bool = False
    manual_order: int
    created_at: datetime
    updated_at: datetime


class TaskPage(BaseModel):
    """列表/重排响应 {data, count}"""

    model_config = ConfigDict(frozen=True)

    data: list[TaskRecord] = Field(default_factory=list)
    count: int = 0


class TaskFilters(BaseModel):
    """当前生效的列表筛选条件（默认按手动顺序展示）"""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    is_completed: bool | None = None
    priority: Priority | None = None
    sort_by: SortField = SortField.MANUAL_ORDER
    sort_order: SortOrder = SortOrder.ASC
    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=DEFAULT_LIST_OFFSET, ge=0)

    def to_params(self) -> dict[str, str | int]:
        """转换为 GET /api/tasks 查询参数（空值不发送）"""
        params: dict[str, str | int] = {
            "sort_by": self.sort_by.value,
            "sort_order": self.sort_order.value,
            "limit": self.limit,
            "offset": self.offset,
        }
        if self.query:
            params["query"] = self.query
        if self.is_completed is not None:
            params["is_completed"] = "true" if self.is_completed else "false"
        if self.priority is not None:
            params["priority"] = self.priority.value
        return params


class UiModals(BaseModel):
    """弹窗/遮罩可见性"""

    model_config = ConfigDict(frozen=True)

    show_new_task_modal: bool = False
    show_edit_task_modal: bool = False
    show_confirmation_modal: bool = False
    show_onboarding_overlay: bool = False


class StoreError(BaseModel):
    """最近一次失败的用户可见描述"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["validation", "auth", "not_found", "server"]
    message: str
    field_errors: dict[str, str] = Field(default_factory=dict)


class AppState(BaseModel):
    """ClientStore 的完整状态快照"""

    model_config = ConfigDict(frozen=True)

    auth_token: str | None = None
    current_user: UserRecord | None = None
    session_mode: SessionMode = SessionMode.ANONYMOUS
    task_list: tuple[TaskRecord, ...] = ()
    task_count: int = 0
    task_filters: TaskFilters = Field(default_factory=TaskFilters)
    ui_modals: UiModals = Field(default_factory=UiModals)
    last_error: StoreError | None = None
