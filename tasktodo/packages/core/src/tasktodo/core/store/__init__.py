"""TaskTodo Core Store -- SQLite 持久化实现

提供工厂函数创建基于连接池的 Store 实例组。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from .pool import ConnectionPool
from .sqlite_init import create_schema, init_db
from .task_store import SqliteTaskStore
from .transaction import reorder_tasks
from .user_store import SqliteUserStore


class StoreSession:
    """单个借出连接上的 Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.user_store = SqliteUserStore(conn)


class StoreGroup:
    """Store 入口 -- 持有连接池，按工作单元借出 StoreSession"""

    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool

    @asynccontextmanager
    async def session(self) -> AsyncIterator[StoreSession]:
        """借出一个连接并包装为 StoreSession，退出时归还"""
        async with self.pool.acquire() as conn:
            yield StoreSession(conn)

    async def close(self) -> None:
        await self.pool.close()


async def create_store_group(db_path: str, pool_size: int = 5) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        pool_size: 连接池大小

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    pool = ConnectionPool(db_path, size=pool_size)
    try:
        await pool.open()
        async with pool.acquire() as conn:
            await create_schema(conn)
    except Exception:
        # 释放已建立的连接及其 aiosqlite 工作线程
        await pool.close()
        raise

    return StoreGroup(pool)


__all__ = [
    "StoreGroup",
    "StoreSession",
    "ConnectionPool",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteUserStore",
    "create_schema",
    "init_db",
    "reorder_tasks",
]
