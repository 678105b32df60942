"""密码哈希与身份 token

- 密码：bcrypt(base64(sha256(password)))，预哈希规避 bcrypt 72 字节上限
- token：HS256 JWT，claims = sub / iat / exp
bcrypt 计算放到工作线程执行，不阻塞事件循环。
"""

import asyncio
import base64
import hashlib
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from tasktodo.core.exceptions import AuthenticationError

from .config import GatewayConfig

# 未知邮箱登录时用于对齐耗时的占位哈希（按 cost 缓存）
_dummy_hashes: dict[int, bytes] = {}


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def _hash_sync(password: str, rounds: int) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def _verify_sync(password: str, password_hash: bytes) -> bool:
    try:
        return bcrypt.checkpw(_prehash(password), password_hash)
    except ValueError:
        # 存储的哈希格式损坏，按校验失败处理
        return False


async def hash_password(password: str, rounds: int = 12) -> str:
    """生成加盐 bcrypt 哈希"""
    return await asyncio.to_thread(_hash_sync, password, rounds)


async def verify_password(password: str, password_hash: str) -> bool:
    """常量时间校验密码"""
    return await asyncio.to_thread(_verify_sync, password, password_hash.encode("utf-8"))


async def burn_password_check(password: str, rounds: int = 12) -> None:
    """对占位哈希做一次完整校验，使"邮箱不存在"与"密码错误"耗时一致"""
    dummy = _dummy_hashes.get(rounds)
    if dummy is None:
        dummy = (await hash_password("tasktodo-placeholder", rounds)).encode("utf-8")
        _dummy_hashes[rounds] = dummy
    await asyncio.to_thread(_verify_sync, password, dummy)


def create_access_token(
    user_id: str,
    config: GatewayConfig,
    now: datetime | None = None,
) -> str:
    """签发绑定 user_id 的限时 token"""
    issued_at = now or datetime.now(UTC)
    claims = {
        "sub": user_id,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=config.jwt_ttl_s)).timestamp()),
    }
    return jwt.encode(
        claims,
        config.jwt_secret.get_secret_value(),
        algorithm=config.jwt_algorithm,
    )


def decode_access_token(token: str, config: GatewayConfig) -> str:
    """校验签名与有效期，返回 user_id

    Raises:
        AuthenticationError: 签名无效、已过期或缺少 sub
    """
    try:
        claims = jwt.decode(
            token,
            config.jwt_secret.get_secret_value(),
            algorithms=[config.jwt_algorithm],
        )
    except JWTError as e:
        raise AuthenticationError() from e

    user_id = claims.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise AuthenticationError()
    return user_id
