"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、连接池大小、列表分页默认值等可配置常量。
"""

import os
from pathlib import Path

import structlog

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKTODO_DATA_DIR", "data"))


def _get_int(env_var: str, default: int) -> int:
    """读取整数环境变量，非法值记录告警并回落默认值（不阻塞启动）"""
    val = os.environ.get(env_var)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        log.warning(
            "invalid_int_config",
            env_var=env_var,
            value=val,
            fallback=default,
        )
        return default


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKTODO_DB_PATH",
        str(_get_base_dir() / "sqlite" / "tasktodo.db"),
    )


def get_db_pool_size() -> int:
    """获取数据库连接池大小（最小为 1）"""
    return max(1, _get_int("TASKTODO_DB_POOL_SIZE", 5))


# 任务列表分页默认值
DEFAULT_LIST_LIMIT: int = 10
DEFAULT_LIST_OFFSET: int = 0

# 密码最小长度
PASSWORD_MIN_LENGTH: int = 8
