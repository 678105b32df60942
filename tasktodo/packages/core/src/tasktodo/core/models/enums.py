"""枚举定义

包含任务优先级、列表排序字段、排序方向、客户端会话模式。
"""

from enum import StrEnum


class Priority(StrEnum):
    """任务优先级"""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# 优先级语义序（排序用，避免按字母序 High < Low < Medium）
PRIORITY_RANK: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


class SortField(StrEnum):
    """任务列表允许的排序字段（白名单）"""

    TITLE = "title"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    MANUAL_ORDER = "manual_order"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(StrEnum):
    """排序方向"""

    ASC = "asc"
    DESC = "desc"


class SessionMode(StrEnum):
    """客户端会话模式"""

    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    # 纯客户端模式：无服务端 token，数据不落盘
    DEMO = "demo"
