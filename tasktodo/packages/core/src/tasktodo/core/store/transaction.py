"""批量重排原子事务封装

在同一 SQLite 事务内应用整批 manual_order 更新：
要么全部生效，要么全部回滚，绝不返回部分应用的顺序。
"""

from collections.abc import Sequence
from datetime import datetime

import aiosqlite
import structlog

from ..exceptions import PersistenceError
from ..models.task import ReorderItem, Task
from .protocols import TaskStore

log = structlog.get_logger()


async def reorder_tasks(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    user_id: str,
    items: Sequence[ReorderItem],
    updated_at: datetime,
) -> tuple[list[Task], int]:
    """在同一事务内原子提交一批 manual_order 更新

    每条更新都带 owner 谓词；不存在或不属于调用者的 id 被跳过，
    不会导致整批失败。

    Args:
        conn: 数据库连接（需与 task_store 为同一连接以保证事务性）
        task_store: TaskStore 实例
        user_id: 调用者 ID
        items: (id, manual_order) 批次，按提交顺序应用，同一 id 以最后一条为准
        updated_at: 写入的 updated_at

    Returns:
        (调用者全部任务按 manual_order 升序, 任务总数)

    Raises:
        PersistenceError: 事务提交失败，已回滚，可重试
    """
    applied = 0
    try:
        for item in items:
            if await task_store.update_manual_order(
                item.id, user_id, item.manual_order, updated_at
            ):
                applied += 1

        # 原子提交
        await conn.commit()
    except Exception as e:
        await conn.rollback()
        log.error(
            "reorder_failed",
            user_id=user_id,
            batch_size=len(items),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise PersistenceError(
            "Reorder could not be applied, please retry",
            original_error=e,
        ) from e

    skipped = len(items) - applied
    if skipped:
        log.info("reorder_rows_skipped", user_id=user_id, skipped=skipped)

    tasks = await task_store.list_all_by_manual_order(user_id)
    return tasks, len(tasks)
