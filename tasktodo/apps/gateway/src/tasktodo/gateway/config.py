"""GatewayConfig -- Gateway 配置加载

从环境变量加载签名密钥、token 有效期、监听地址等配置。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

_DEV_SECRET = "dev-secret"

# bcrypt 库接受的 cost 范围
BCRYPT_MIN_ROUNDS = 4
BCRYPT_MAX_ROUNDS = 31


class GatewayConfig(BaseModel):
    """Gateway 配置 -- 从环境变量加载

    环境变量:
        TASKTODO_JWT_SECRET: token 签名密钥
        TASKTODO_JWT_TTL_S: token 有效期（秒，默认 3600）
        TASKTODO_BCRYPT_ROUNDS: bcrypt cost（默认 12）
        TASKTODO_HOST / TASKTODO_PORT: 监听地址
        TASKTODO_CORS_ORIGINS: 逗号分隔的允许来源（默认 *）
        TASKTODO_STATIC_DIR: SPA 静态文件目录
    """

    jwt_secret: SecretStr = Field(
        default=SecretStr(_DEV_SECRET),
        description="HS256 签名密钥",
    )
    jwt_algorithm: str = Field(default="HS256", description="签名算法")
    jwt_ttl_s: int = Field(default=3600, ge=1, description="token 有效期（秒）")
    bcrypt_rounds: int = Field(
        default=12, ge=BCRYPT_MIN_ROUNDS, le=BCRYPT_MAX_ROUNDS, description="bcrypt cost"
    )
    host: str = Field(default="0.0.0.0", description="监听地址")
    port: int = Field(default=3000, ge=1, le=65535, description="监听端口")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="CORS 允许来源")
    static_dir: str | None = Field(default=None, description="SPA 静态文件目录")


def _int_from_env(
    env_var: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    """读取整数环境变量；非法或越界时记录警告并返回 None（使用默认值）"""
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        parsed = int(val)
    except ValueError:
        log.warning(
            "invalid_int_config",
            env_var=env_var,
            value=val,
            fallback=default,
        )
        # 使用默认值，不阻塞启动
        return None

    if (minimum is not None and parsed < minimum) or (maximum is not None and parsed > maximum):
        log.warning(
            "out_of_range_int_config",
            env_var=env_var,
            value=parsed,
            minimum=minimum,
            maximum=maximum,
            fallback=default,
        )
        return None
    return parsed


def load_gateway_config() -> GatewayConfig:
    """从环境变量加载 Gateway 配置

    Returns:
        GatewayConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKTODO_JWT_SECRET"):
        kwargs["jwt_secret"] = SecretStr(val)
    else:
        log.warning(
            "insecure_jwt_secret",
            message="TASKTODO_JWT_SECRET 未设置，使用开发默认密钥",
        )

    if (ttl := _int_from_env("TASKTODO_JWT_TTL_S", 3600, minimum=1)) is not None:
        kwargs["jwt_ttl_s"] = ttl

    rounds = _int_from_env(
        "TASKTODO_BCRYPT_ROUNDS", 12, minimum=BCRYPT_MIN_ROUNDS, maximum=BCRYPT_MAX_ROUNDS
    )
    if rounds is not None:
        kwargs["bcrypt_rounds"] = rounds

    if val := os.environ.get("TASKTODO_HOST"):
        kwargs["host"] = val

    if (port := _int_from_env("TASKTODO_PORT", 3000, minimum=1, maximum=65535)) is not None:
        kwargs["port"] = port

    if val := os.environ.get("TASKTODO_CORS_ORIGINS"):
        kwargs["cors_origins"] = [o.strip() for o in val.split(",") if o.strip()]

    if val := os.environ.get("TASKTODO_STATIC_DIR"):
        kwargs["static_dir"] = val

    return GatewayConfig(**kwargs)
