"""UserStore SQLite 实现

email 唯一性由 users 表 UNIQUE 约束保证，
重复插入时由调用方捕获 aiosqlite.IntegrityError。
"""

from datetime import datetime

import aiosqlite

from ..models.user import User

_COLUMNS = "user_id, email, password_hash, is_demo, created_at, updated_at"


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(self, user: User) -> None:
        """创建用户记录（不提交）"""
        await self._conn.execute(
            f"INSERT INTO users ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                user.user_id,
                user.email,
                user.password_hash,
                int(user.is_demo),
                user.created_at.isoformat(timespec="microseconds"),
                user.updated_at.isoformat(timespec="microseconds"),
            ),
        )

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM users WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    async def get_user_by_email(self, email: str) -> User | None:
        """根据 email 精确查询用户"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM users WHERE email = ?",
            (email,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        """将数据库行转换为 User 模型"""
        return User(
            user_id=row["user_id"],
            email=row["email"],
            password_hash=row["password_hash"],
            is_demo=bool(row["is_demo"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
