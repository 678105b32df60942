"""Store Protocol 接口定义

定义 TaskStore、UserStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.query import TaskQuery
from ..models.task import Task
from ..models.user import User


class TaskStore(Protocol):
    """Task 存储接口

    所有方法都以 (task_id, user_id) 组合定位行，不提供跨用户访问。
    """

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str, user_id: str) -> Task | None:
        """按 id + owner 查询任务"""
        ...

    async def list_tasks(self, user_id: str, query: TaskQuery) -> tuple[list[Task], int]:
        """筛选/排序/分页查询，返回 (当前页, 总数)"""
        ...

    async def list_all_by_manual_order(self, user_id: str) -> list[Task]:
        """按 manual_order 升序查询用户全部任务"""
        ...

    async def update_task(
        self,
        task_id: str,
        user_id: str,
        changes: dict[str, Any],
        updated_at: datetime,
    ) -> Task | None:
        """局部更新任务"""
        ...

    async def update_manual_order(
        self,
        task_id: str,
        user_id: str,
        manual_order: int,
        updated_at: datetime,
    ) -> bool:
        """更新单条任务的 manual_order"""
        ...

    async def delete_task(self, task_id: str, user_id: str) -> bool:
        """删除任务"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def create_user(self, user: User) -> None:
        """创建用户（email 重复时抛出 IntegrityError）"""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """根据 email 查询用户"""
        ...
