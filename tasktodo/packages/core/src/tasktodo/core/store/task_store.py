"""TaskStore SQLite 实现

所有读写语句都带 `task_id = ? AND user_id = ?`（或 `user_id = ?`）组合谓词，
"不存在"与"不属于调用者"在此层即不可区分。
SQL 中出现的列名/排序表达式只来自本模块常量，调用方输入一律参数化。
"""

from datetime import date, datetime
from typing import Any

import aiosqlite

from ..exceptions import ValidationFailedError
from ..models.enums import PRIORITY_RANK, Priority, SortField, SortOrder
from ..models.query import TaskQuery
from ..models.task import PATCHABLE_FIELDS, Task

_COLUMNS = (
    "task_id, user_id, title, description, due_date, priority, "
    "is_completed, manual_order, created_at, updated_at"
)

# 优先级按语义序排序：Low < Medium < High
_PRIORITY_RANK_SQL = (
    "CASE priority "
    + " ".join(f"WHEN '{p.value}' THEN {rank}" for p, rank in PRIORITY_RANK.items())
    + " END"
)

# 排序字段白名单 -> SQL 排序表达式
_SORT_EXPRESSIONS: dict[SortField, str] = {
    SortField.TITLE: "title COLLATE NOCASE",
    SortField.DUE_DATE: "due_date",
    SortField.PRIORITY: _PRIORITY_RANK_SQL,
    SortField.MANUAL_ORDER: "manual_order",
    SortField.CREATED_AT: "created_at",
    SortField.UPDATED_AT: "updated_at",
}

_SORT_DIRECTIONS: dict[SortOrder, str] = {
    SortOrder.ASC: "ASC",
    SortOrder.DESC: "DESC",
}


def _format_ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _to_db_value(field: str, value: Any) -> Any:
    """将模型字段值转换为列值"""
    if value is None:
        return None
    if field == "due_date":
        return value.isoformat() if isinstance(value, date) else str(value)
    if field == "priority":
        return Priority(value).value
    if field == "is_completed":
        return int(bool(value))
    return value


def build_order_by(sort_by: SortField, sort_order: SortOrder) -> str:
    """构建 ORDER BY 子句（不含关键字）

    未设置截止日期的任务总是排在最后；task_id 作为稳定的次级排序，
    保证分页结果确定。
    """
    expression = _SORT_EXPRESSIONS[SortField(sort_by)]
    direction = _SORT_DIRECTIONS[SortOrder(sort_order)]
    clause = f"{expression} {direction}"
    if sort_by == SortField.DUE_DATE:
        clause += " NULLS LAST"
    return f"{clause}, task_id ASC"


def build_filters(user_id: str, query: TaskQuery) -> tuple[str, list[Any]]:
    """构建 WHERE 子句（不含关键字）与参数列表，首个谓词永远是 owner"""
    conditions = ["user_id = ?"]
    params: list[Any] = [user_id]

    if query.query is not None:
        conditions.append("instr(casefold(title), ?) > 0")
        params.append(query.query.casefold())
    if query.is_completed is not None:
        conditions.append("is_completed = ?")
        params.append(int(query.is_completed))
    if query.priority is not None:
        conditions.append("priority = ?")
        params.append(query.priority.value)

    return " AND ".join(conditions), params


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现（不负责提交事务）"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录，manual_order 原样存储"""
        await self._conn.execute(
            f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task.task_id,
                task.user_id,
                task.title,
                task.description,
                _to_db_value("due_date", task.due_date),
                task.priority.value,
                int(task.is_completed),
                task.manual_order,
                _format_ts(task.created_at),
                _format_ts(task.updated_at),
            ),
        )

    async def get_task(self, task_id: str, user_id: str) -> Task | None:
        """按 id + owner 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ? AND user_id = ?",
            (task_id, user_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, user_id: str, query: TaskQuery) -> tuple[list[Task], int]:
        """按筛选/排序/分页查询任务

        Returns:
            (当前页任务, 忽略分页的匹配总数)
        """
        where_sql, params = build_filters(user_id, query)
        order_sql = build_order_by(query.sort_by, query.sort_order)

        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE {where_sql} "
            f"ORDER BY {order_sql} LIMIT ? OFFSET ?",
            (*params, query.limit, query.offset),
        )
        rows = await cursor.fetchall()

        count_cursor = await self._conn.execute(
            f"SELECT COUNT(*) FROM tasks WHERE {where_sql}",
            params,
        )
        count_row = await count_cursor.fetchone()
        count = int(count_row[0]) if count_row is not None else 0

        return [self._row_to_task(row) for row in rows], count

    async def list_all_by_manual_order(self, user_id: str) -> list[Task]:
        """查询用户全部任务，按 manual_order 升序（重排后的规范顺序）"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? "
            "ORDER BY manual_order ASC, task_id ASC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(
        self,
        task_id: str,
        user_id: str,
        changes: dict[str, Any],
        updated_at: datetime,
    ) -> Task | None:
        """局部更新任务（updated_at 总是刷新）

        Args:
            changes: 待更新字段，只有 PATCHABLE_FIELDS 中的键会生效

        Returns:
            更新后的任务；不存在或不属于调用者时返回 None

        Raises:
            ValidationFailedError: 没有任何可更新字段
        """
        set_clauses: list[str] = []
        values: list[Any] = []
        for field in PATCHABLE_FIELDS:
            if field in changes:
                set_clauses.append(f"{field} = ?")
                values.append(_to_db_value(field, changes[field]))

        if not set_clauses:
            raise ValidationFailedError("No valid fields provided for update")

        set_clauses.append("updated_at = ?")
        values.append(_format_ts(updated_at))

        cursor = await self._conn.execute(
            f"UPDATE tasks SET {', '.join(set_clauses)} "
            "WHERE task_id = ? AND user_id = ?",
            (*values, task_id, user_id),
        )
        if cursor.rowcount == 0:
            return None
        return await self.get_task(task_id, user_id)

    async def update_manual_order(
        self,
        task_id: str,
        user_id: str,
        manual_order: int,
        updated_at: datetime,
    ) -> bool:
        """更新单条任务的 manual_order

        Returns:
            True 如果命中了调用者自己的任务
        """
        cursor = await self._conn.execute(
            "UPDATE tasks SET manual_order = ?, updated_at = ? "
            "WHERE task_id = ? AND user_id = ?",
            (manual_order, _format_ts(updated_at), task_id, user_id),
        )
        return cursor.rowcount > 0

    async def delete_task(self, task_id: str, user_id: str) -> bool:
        """删除任务（硬删除）

        Returns:
            True 如果删除了一行；不存在或不属于调用者时 False
        """
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ? AND user_id = ?",
            (task_id, user_id),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        due_date = row["due_date"]
        return Task(
            task_id=row["task_id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            due_date=date.fromisoformat(due_date) if due_date else None,
            priority=row["priority"],
            is_completed=bool(row["is_completed"]),
            manual_order=row["manual_order"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
