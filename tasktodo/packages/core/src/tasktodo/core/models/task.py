"""Task Domain Model

due_date 为纯日历日期（无时区语义），存储为 YYYY-MM-DD。
manual_order 由调用方指定，服务端不保证唯一或连续。
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .enums import Priority

# PATCH 允许修改的字段（白名单，同时也是 SQL SET 子句的唯一列名来源）
PATCHABLE_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "due_date",
    "priority",
    "is_completed",
    "manual_order",
)

# manual_order 取值范围：SQLite INTEGER 为有符号 64 位
MANUAL_ORDER_MIN = -(2**63)
MANUAL_ORDER_MAX = 2**63 - 1

# 不允许显式置为 null 的字段
_NON_NULLABLE_FIELDS = {"title", "priority", "is_completed", "manual_order"}


class Task(BaseModel):
    """Task 数据模型

    owner（user_id）在创建时确定，之后不可变更。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    user_id: str = Field(description="所属用户 ID")
    title: str = Field(min_length=1, description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    due_date: date | None = Field(default=None, description="截止日期（纯日历日期）")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    is_completed: bool = Field(default=False, description="是否完成")
    manual_order: int = Field(description="手动排序值")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")


class TaskCreate(BaseModel):
    """任务创建输入"""

    title: str = Field(min_length=1, description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    due_date: date | None = Field(default=None, description="截止日期")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    is_completed: bool = Field(default=False, description="是否完成")
    manual_order: int = Field(
        ge=MANUAL_ORDER_MIN, le=MANUAL_ORDER_MAX, description="手动排序值（调用方指定，原样存储）"
    )


class TaskPatch(BaseModel):
    """任务局部更新输入

    未出现的字段保持不变；description / due_date 可显式置为 null。
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    due_date: date | None = None
    priority: Priority | None = None
    is_completed: bool | None = None
    manual_order: int | None = Field(default=None, ge=MANUAL_ORDER_MIN, le=MANUAL_ORDER_MAX)

    @field_validator("title", "priority", "is_completed", "manual_order", mode="before")
    @classmethod
    def _reject_explicit_null(cls, value: Any, info) -> Any:
        if value is None and info.field_name in _NON_NULLABLE_FIELDS:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        """返回调用方实际提供的白名单字段"""
        provided = self.model_dump(exclude_unset=True)
        return {k: provided[k] for k in PATCHABLE_FIELDS if k in provided}


class ReorderItem(BaseModel):
    """重排批次中的单条 (task_id, manual_order) 赋值"""

    id: str = Field(min_length=1, description="任务 ID")
    manual_order: int = Field(
        ge=MANUAL_ORDER_MIN, le=MANUAL_ORDER_MAX, description="新的手动排序值"
    )
