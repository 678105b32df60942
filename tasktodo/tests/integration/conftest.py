"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from tasktodo.client import ClientStore, TaskTodoClient
from tasktodo.core.store import create_store_group
from tasktodo.gateway.config import GatewayConfig


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path):
    """集成测试用 FastAPI app"""
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from tasktodo.gateway.main import create_app

    app = create_app(GatewayConfig(jwt_secret=SecretStr("integration-secret"), bcrypt_rounds=4))

    store_group = await create_store_group(str(tmp_path / "test.db"), pool_size=4)
    app.state.store_group = store_group

    yield app

    await store_group.close()
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def client_store(integration_app) -> AsyncGenerator[ClientStore, None]:
    """连接真实 app 的 ClientStore"""
    api = TaskTodoClient(base_url="http://test", transport=ASGITransport(app=integration_app))
    yield ClientStore(api)
    await api.aclose()
