"""apps/gateway 测试配置 -- httpx AsyncClient + 临时连接池"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from tasktodo.core.store import create_store_group
from tasktodo.gateway.config import GatewayConfig

TEST_PASSWORD = "password123"


@pytest_asyncio.fixture
async def gateway_config() -> GatewayConfig:
    """测试配置：最低 bcrypt cost 加快测试"""
    return GatewayConfig(jwt_secret=SecretStr("test-secret"), bcrypt_rounds=4)


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, gateway_config: GatewayConfig):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from tasktodo.gateway.main import create_app

    app = create_app(gateway_config)

    # 手动初始化 Store（ASGITransport 不触发 lifespan）
    store_group = await create_store_group(str(tmp_path / "test.db"), pool_size=3)
    app.state.store_group = store_group

    yield app

    await store_group.close()
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def signup(client: AsyncClient):
    """注册工厂：返回 (Authorization headers, user dict)"""

    async def _signup(email: str, password: str = TEST_PASSWORD) -> tuple[dict, dict]:
        resp = await client.post(
            "/api/auth/signup", json={"email": email, "password": password}
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["data"]

    return _signup


@pytest_asyncio.fixture
async def alice(signup) -> dict:
    headers, _ = await signup("alice@example.com")
    return headers


@pytest_asyncio.fixture
async def bob(signup) -> dict:
    headers, _ = await signup("bob@example.com")
    return headers


@pytest_asyncio.fixture
async def create_task(client: AsyncClient):
    """任务创建工厂：返回服务端记录"""

    async def _create(headers: dict, title: str, manual_order: int = 1, **fields) -> dict:
        resp = await client.post(
            "/api/tasks",
            json={"title": title, "manual_order": manual_order, **fields},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create
