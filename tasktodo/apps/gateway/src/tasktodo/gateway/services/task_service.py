"""TaskService -- 任务查询/创建/更新/删除/重排业务逻辑

所有操作都以认证得到的 user_id 作为 owner 作用域，
user_id 永远不来自客户端请求体。
"""

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog
from tasktodo.core.exceptions import NotFoundError, ValidationFailedError
from tasktodo.core.models import ReorderItem, Task, TaskCreate, TaskPatch, TaskQuery
from tasktodo.core.store import StoreGroup
from tasktodo.core.store.transaction import reorder_tasks
from ulid import ULID

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def list_tasks(self, user_id: str, query: TaskQuery) -> tuple[list[Task], int]:
        """按筛选条件查询任务，返回 (当前页, 总数)"""
        async with self._stores.session() as stores:
            return await stores.task_store.list_tasks(user_id, query)

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """查询单个任务

        Raises:
            NotFoundError: 不存在或不属于调用者
        """
        async with self._stores.session() as stores:
            task = await stores.task_store.get_task(task_id, user_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    async def create_task(self, user_id: str, data: TaskCreate) -> Task:
        """创建任务，manual_order 原样存储"""
        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )

        async with self._stores.session() as stores:
            try:
                await stores.task_store.create_task(task)
                await stores.conn.commit()
            except Exception:
                await stores.conn.rollback()
                raise

        log.info("task_created", task_id=task.task_id, manual_order=task.manual_order)
        return task

    async def update_task(self, user_id: str, task_id: str, patch: TaskPatch) -> Task:
        """局部更新任务

        Raises:
            ValidationFailedError: 没有提供任何可更新字段
            NotFoundError: 不存在或不属于调用者
        """
        changes = patch.changes()
        if not changes:
            raise ValidationFailedError("No valid fields provided for update")

        async with self._stores.session() as stores:
            try:
                task = await stores.task_store.update_task(
                    task_id, user_id, changes, datetime.now(UTC)
                )
                await stores.conn.commit()
            except Exception:
                await stores.conn.rollback()
                raise

        if task is None:
            raise NotFoundError(task_id)

        log.info("task_updated", task_id=task_id, fields=sorted(changes))
        return task

    async def delete_task(self, user_id: str, task_id: str) -> None:
        """删除任务

        Raises:
            NotFoundError: 不存在或不属于调用者
        """
        async with self._stores.session() as stores:
            try:
                deleted = await stores.task_store.delete_task(task_id, user_id)
                await stores.conn.commit()
            except Exception:
                await stores.conn.rollback()
                raise

        if not deleted:
            raise NotFoundError(task_id)
        log.info("task_deleted", task_id=task_id)

    async def reorder(
        self,
        user_id: str,
        items: Sequence[ReorderItem],
    ) -> tuple[list[Task], int]:
        """原子应用一批 manual_order 赋值，返回规范顺序的完整列表

        Raises:
            PersistenceError: 事务失败（已回滚，可重试）
        """
        async with self._stores.session() as stores:
            tasks, count = await reorder_tasks(
                stores.conn,
                stores.task_store,
                user_id,
                items,
                datetime.now(UTC),
            )

        log.info("tasks_reordered", batch_size=len(items), count=count)
        return tasks, count
