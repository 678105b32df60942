"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store、配置与调用者身份

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from tasktodo.core.exceptions import AuthenticationError
from tasktodo.core.store import StoreGroup

from .config import GatewayConfig
from .security import decode_access_token

_bearer = HTTPBearer(auto_error=False)


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_gateway_config(request: Request) -> GatewayConfig:
    """从 app.state 获取 GatewayConfig 实例"""
    return request.app.state.gateway_config


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    config: GatewayConfig = Depends(get_gateway_config),
) -> str:
    """校验 Bearer token 并返回调用者 user_id

    缺少 header、缺少 token、签名/有效期校验失败统一返回 401。
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    user_id = decode_access_token(credentials.credentials, config)
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user_id
