"""AuthService -- 注册/登录/身份解析业务逻辑

注册流程：
1. 检查 email 是否已被占用
2. 生成 bcrypt 哈希（工作线程，不持有数据库连接）
3. 写入 users（UNIQUE 冲突回退为 ConflictError，处理并发注册）
4. 签发 token
"""

from datetime import UTC, datetime

import aiosqlite
import structlog
from tasktodo.core.exceptions import AuthenticationError, ConflictError
from tasktodo.core.models import PublicUser, User
from tasktodo.core.store import StoreGroup
from ulid import ULID

from ..config import GatewayConfig
from ..security import (
    burn_password_check,
    create_access_token,
    hash_password,
    verify_password,
)

log = structlog.get_logger()

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


class AuthService:
    """身份业务服务"""

    def __init__(self, store_group: StoreGroup, config: GatewayConfig) -> None:
        self._stores = store_group
        self._config = config

    async def signup(
        self,
        email: str,
        password: str,
        is_demo: bool = False,
    ) -> tuple[str, PublicUser]:
        """创建账号并签发 token

        Returns:
            (token, 用户信息)

        Raises:
            ConflictError: email 已被注册
        """
        async with self._stores.session() as stores:
            if await stores.user_store.get_user_by_email(email) is not None:
                raise ConflictError()

        password_hash = await hash_password(password, self._config.bcrypt_rounds)

        now = datetime.now(UTC)
        user = User(
            user_id=str(ULID()),
            email=email,
            password_hash=password_hash,
            is_demo=is_demo,
            created_at=now,
            updated_at=now,
        )

        async with self._stores.session() as stores:
            try:
                await stores.user_store.create_user(user)
                await stores.conn.commit()
            except aiosqlite.IntegrityError as e:
                await stores.conn.rollback()
                if self._is_email_conflict(e):
                    # 并发注册同一 email：由 UNIQUE 约束兜底
                    raise ConflictError() from e
                raise

        log.info("user_signed_up", user_id=user.user_id, is_demo=is_demo)
        return create_access_token(user.user_id, self._config), user.to_public()

    async def login(self, email: str, password: str) -> tuple[str, PublicUser]:
        """校验凭证并签发 token

        Raises:
            AuthenticationError: 邮箱不存在或密码错误（对外不区分）
        """
        async with self._stores.session() as stores:
            user = await stores.user_store.get_user_by_email(email)

        if user is None:
            await burn_password_check(password, self._config.bcrypt_rounds)
            log.info("login_failed")
            raise self._invalid_credentials()

        if not await verify_password(password, user.password_hash):
            log.info("login_failed")
            raise self._invalid_credentials()

        log.info("user_logged_in", user_id=user.user_id)
        return create_access_token(user.user_id, self._config), user.to_public()

    async def get_user(self, user_id: str) -> PublicUser:
        """解析当前身份

        Raises:
            AuthenticationError: token 合法但用户已不存在
        """
        async with self._stores.session() as stores:
            user = await stores.user_store.get_user(user_id)
        if user is None:
            raise AuthenticationError()
        return user.to_public()

    @staticmethod
    def _invalid_credentials() -> AuthenticationError:
        return AuthenticationError(INVALID_CREDENTIALS_MESSAGE, code="INVALID_CREDENTIALS")

    @staticmethod
    def _is_email_conflict(error: Exception) -> bool:
        return "users.email" in str(error)
