"""CLI 入口模块 -- python -m tasktodo.core <command>

支持的命令：
  init-db  在配置的路径上创建数据库表结构
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m tasktodo.core <command>")
        print("命令:")
        print("  init-db  创建数据库表结构")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db")
        sys.exit(1)


async def init_database() -> None:
    """执行数据库初始化（幂等）"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path, pool_size=1)
    try:
        print("表结构已就绪")
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
