"""User Domain Model

password_hash 只存在于 User 上，对外一律使用 PublicUser。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PublicUser(BaseModel):
    """对外可见的用户信息（不含密码哈希）"""

    user_id: str = Field(description="唯一标识，ULID 格式")
    email: str = Field(description="邮箱（按注册时原样存储，区分大小写）")
    is_demo: bool = Field(default=False, description="演示账号标记")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")


class User(PublicUser):
    """User 数据模型（含 bcrypt 哈希）"""

    password_hash: str = Field(description="bcrypt 哈希，绝不存储明文")

    def to_public(self) -> PublicUser:
        return PublicUser(**self.model_dump(exclude={"password_hash"}))
