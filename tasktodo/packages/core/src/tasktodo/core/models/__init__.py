"""TaskTodo Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import PRIORITY_RANK, Priority, SessionMode, SortField, SortOrder
from .query import TaskQuery
from .task import PATCHABLE_FIELDS, ReorderItem, Task, TaskCreate, TaskPatch
from .user import PublicUser, User

__all__ = [
    # 枚举
    "Priority",
    "PRIORITY_RANK",
    "SortField",
    "SortOrder",
    "SessionMode",
    # Task
    "Task",
    "TaskCreate",
    "TaskPatch",
    "ReorderItem",
    "PATCHABLE_FIELDS",
    # 查询
    "TaskQuery",
    # User
    "User",
    "PublicUser",
]
