"""任务列表查询参数

所有排序/筛选参数在进入 Store 前完成校验，
排序字段只能取 SortField 白名单中的值。
"""

from pydantic import BaseModel, Field, field_validator

from ..config import DEFAULT_LIST_LIMIT, DEFAULT_LIST_OFFSET
from .enums import Priority, SortField, SortOrder


class TaskQuery(BaseModel):
    """任务列表筛选 + 排序 + 分页"""

    query: str | None = Field(default=None, description="标题子串（大小写不敏感）")
    is_completed: bool | None = Field(default=None, description="按完成状态筛选")
    priority: Priority | None = Field(default=None, description="按优先级筛选")
    sort_by: SortField = Field(default=SortField.CREATED_AT, description="排序字段")
    sort_order: SortOrder = Field(default=SortOrder.DESC, description="排序方向")
    limit: int = Field(default=DEFAULT_LIST_LIMIT, ge=1, description="分页大小")
    offset: int = Field(default=DEFAULT_LIST_OFFSET, ge=0, description="分页偏移")

    @field_validator("query")
    @classmethod
    def _empty_query_means_no_filter(cls, value: str | None) -> str | None:
        # 空串视为"不过滤"，而不是"什么都不匹配"
        if value is None or value == "":
            return None
        return value
