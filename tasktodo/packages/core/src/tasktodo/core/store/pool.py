"""ConnectionPool -- 有界 aiosqlite 连接池

每个请求仅在自身工作单元期间持有一个连接；
归还时若仍有未结束的事务则先回滚，保证下一个借用者拿到干净连接。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite
import structlog

from ..exceptions import PersistenceError
from .sqlite_init import configure_connection

log = structlog.get_logger()


class ConnectionPool:
    """基于 asyncio.Queue 的固定大小连接池"""

    def __init__(self, db_path: str, size: int = 5) -> None:
        if size < 1:
            raise ValueError("pool size must be >= 1")
        self._db_path = db_path
        self._size = size
        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=size)
        self._connections: list[aiosqlite.Connection] = []
        self._closed = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def available(self) -> int:
        """当前空闲连接数"""
        return self._idle.qsize()

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """建立全部连接并完成连接级配置

        失败时已建立的连接仍登记在池中，由调用方 close() 释放。
        """
        for _ in range(self._size):
            conn = await aiosqlite.connect(self._db_path)
            self._connections.append(conn)
            await configure_connection(conn)
            self._idle.put_nowait(conn)
        log.debug("connection_pool_opened", db_path=self._db_path, size=self._size)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """借出一个连接，退出上下文时归还

        Raises:
            PersistenceError: 连接池已关闭
        """
        if self._closed:
            raise PersistenceError("Connection pool is closed")

        conn = await self._idle.get()
        try:
            yield conn
        finally:
            # 异常/取消路径上可能残留未提交事务
            if conn.in_transaction:
                log.warning("connection_returned_in_transaction", action="rollback")
                await conn.rollback()
            self._idle.put_nowait(conn)

    async def close(self) -> None:
        """关闭全部连接"""
        if self._closed:
            return
        self._closed = True
        for conn in self._connections:
            await conn.close()
        self._connections.clear()
        log.debug("connection_pool_closed", db_path=self._db_path)
