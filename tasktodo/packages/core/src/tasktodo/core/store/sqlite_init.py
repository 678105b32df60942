"""SQLite 数据库初始化

连接级 PRAGMA + casefold 函数注册 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# users 表 DDL（email 唯一约束在持久层强制，避免并发注册竞态）
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id        TEXT PRIMARY KEY,
    email          TEXT NOT NULL UNIQUE,
    password_hash  TEXT NOT NULL,
    is_demo        INTEGER NOT NULL DEFAULT 0,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
"""

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id       TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL,
    title         TEXT NOT NULL CHECK (length(title) > 0),
    description   TEXT,
    due_date      TEXT,
    priority      TEXT NOT NULL DEFAULT 'Medium'
                  CHECK (priority IN ('High', 'Medium', 'Low')),
    is_completed  INTEGER NOT NULL DEFAULT 0,
    manual_order  INTEGER NOT NULL,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,

    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_manual_order ON tasks(user_id, manual_order);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_created_at ON tasks(user_id, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_completed ON tasks(user_id, is_completed);",
]

_CONNECTION_PRAGMAS = [
    "PRAGMA journal_mode = WAL;",
    "PRAGMA foreign_keys = ON;",
    "PRAGMA busy_timeout = 5000;",
]


def _casefold(value: str | None) -> str | None:
    """Unicode 大小写折叠（SQLite 内置 lower() 只处理 ASCII）"""
    if value is None:
        return None
    return value.casefold()


async def configure_connection(conn: aiosqlite.Connection) -> None:
    """连接级配置：PRAGMA + 自定义函数 + Row 工厂

    foreign_keys / busy_timeout 是连接级设置，池中每个连接都需要执行。
    返回结果行的 PRAGMA 必须读完并关闭游标，否则语句保持活动状态，
    随后的 create_function 会失败。
    """
    for pragma in _CONNECTION_PRAGMAS:
        async with conn.execute(pragma) as cursor:
            await cursor.fetchall()
    await conn.create_function("casefold", 1, _casefold, deterministic=True)
    conn.row_factory = aiosqlite.Row


async def create_schema(conn: aiosqlite.Connection) -> None:
    """创建表 + 创建索引（要求连接已完成 configure_connection）

    Args:
        conn: 已配置的 aiosqlite 数据库连接
    """
    # 创建表（users 先于 tasks，外键依赖）
    await conn.execute(_USERS_DDL)
    await conn.execute(_TASKS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化独立连接：连接配置 + 表结构

    连接池中的连接已在 open() 时配置，应直接调用 create_schema。

    Args:
        conn: aiosqlite 数据库连接
    """
    await configure_connection(conn)
    await create_schema(conn)


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    async with conn.execute("PRAGMA journal_mode;") as cursor:
        row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
