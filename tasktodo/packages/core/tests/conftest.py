"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest_asyncio
from tasktodo.core.models import Priority, Task, User
from tasktodo.core.store.task_store import SqliteTaskStore
from tasktodo.core.store.user_store import SqliteUserStore

# 固定基准时间，created_at 按创建顺序递增
BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def core_db(core_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """核心层已初始化数据库连接"""
    from tasktodo.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(core_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def task_store(core_db: aiosqlite.Connection) -> SqliteTaskStore:
    return SqliteTaskStore(core_db)


@pytest_asyncio.fixture
async def make_user(core_db: aiosqlite.Connection):
    """用户工厂：写入并提交一个用户"""

    async def _make(user_id: str, email: str | None = None) -> User:
        user = User(
            user_id=user_id,
            email=email or f"{user_id.lower()}@example.com",
            password_hash="$2b$04$placeholderplaceholderplaceholderplaceholderpla",
            created_at=BASE_TIME,
            updated_at=BASE_TIME,
        )
        await SqliteUserStore(core_db).create_user(user)
        await core_db.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def make_task(core_db: aiosqlite.Connection):
    """任务工厂：按调用顺序生成递增的 task_id 与 created_at"""
    counter = {"n": 0}

    async def _make(
        user_id: str,
        title: str = "task",
        manual_order: int | None = None,
        **fields,
    ) -> Task:
        counter["n"] += 1
        n = counter["n"]
        created_at = BASE_TIME + timedelta(minutes=n)
        task = Task(
            task_id=fields.pop("task_id", f"01JTASK{n:019d}"),
            user_id=user_id,
            title=title,
            manual_order=manual_order if manual_order is not None else n,
            created_at=created_at,
            updated_at=created_at,
            priority=fields.pop("priority", Priority.MEDIUM),
            **fields,
        )
        await SqliteTaskStore(core_db).create_task(task)
        await core_db.commit()
        return task

    return _make
