"""身份路由

POST /api/auth/signup: 注册，返回 201 + token + user。
POST /api/auth/login: 登录，返回 200 + token + user。
GET /api/auth/user: 解析当前 token 对应的用户。
"""

import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from starlette.responses import JSONResponse
from tasktodo.core.config import PASSWORD_MIN_LENGTH
from tasktodo.core.models import PublicUser

from ..deps import get_current_user_id, get_gateway_config, get_store_group
from ..services.auth_service import AuthService

router = APIRouter()

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")


class SignupRequest(BaseModel):
    """注册请求体"""

    email: str = Field(description="邮箱")
    password: str = Field(
        min_length=PASSWORD_MIN_LENGTH,
        description="明文密码（仅用于生成哈希）",
    )
    is_demo: bool = Field(default=False, description="演示账号标记")

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        if not _EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value


class LoginRequest(BaseModel):
    """登录请求体"""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


def user_to_dict(user: PublicUser) -> dict:
    """序列化用户（不含密码哈希）"""
    return {
        "id": user.user_id,
        "email": user.email,
        "is_demo": user.is_demo,
        "created_at": user.created_at.isoformat(),
        "updated_at": user.updated_at.isoformat(),
    }


@router.post("/api/auth/signup", status_code=201)
async def signup(
    body: SignupRequest,
    store_group=Depends(get_store_group),
    config=Depends(get_gateway_config),
):
    """创建账号

    - 成功返回 201
    - 输入不合法或 email 已被注册返回 400
    """
    service = AuthService(store_group, config)
    token, user = await service.signup(body.email, body.password, body.is_demo)
    return JSONResponse(
        status_code=201,
        content={"token": token, "data": user_to_dict(user)},
    )


@router.post("/api/auth/login")
async def login(
    body: LoginRequest,
    store_group=Depends(get_store_group),
    config=Depends(get_gateway_config),
):
    """登录，任何凭证错误都返回同一个 401"""
    service = AuthService(store_group, config)
    token, user = await service.login(body.email, body.password)
    return {"token": token, "data": user_to_dict(user)}


@router.get("/api/auth/user")
async def current_user(
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
    config=Depends(get_gateway_config),
):
    """返回当前 token 对应的用户"""
    service = AuthService(store_group, config)
    user = await service.get_user(user_id)
    return {"data": user_to_dict(user)}
