"""FastAPI 应用主文件

app 创建 + lifespan 管理：连接池初始化/关闭 + 中间件 + 异常处理 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from tasktodo.core.config import get_db_path, get_db_pool_size
from tasktodo.core.store import create_store_group

from .config import GatewayConfig, load_gateway_config
from .errors import install_exception_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import auth, health, tasks

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时建立连接池，关闭时清理连接"""
    db_path = get_db_path()
    pool_size = get_db_pool_size()
    store_group = await create_store_group(db_path, pool_size)
    app.state.store_group = store_group
    log.info("store_initialized", db_path=db_path, pool_size=pool_size)

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.close()


def _resolve_static_dir(config: GatewayConfig) -> Path:
    if config.static_dir:
        return Path(config.static_dir)
    gateway_root = Path(__file__).resolve().parent
    return gateway_root.parents[4] / "public"


def create_app(config: GatewayConfig | None = None) -> FastAPI:
    """创建 FastAPI 应用实例"""
    config = config or load_gateway_config()

    app = FastAPI(
        title="TaskTodo Gateway",
        version="0.1.0",
        description="TaskTodo 任务管理 REST API",
        lifespan=lifespan,
    )
    app.state.gateway_config = config

    # 注册中间件（后注册的在外层：CORS > Logging > Trace）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    install_exception_handlers(app)

    # 注册路由
    app.include_router(auth.router, tags=["auth"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    # 挂载 SPA 静态文件
    # 在所有 API 路由之后挂载，确保 API 优先匹配
    static_dir = _resolve_static_dir(config)
    if static_dir.exists():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="frontend")

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
