"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，借出一个池连接执行 SELECT 1。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证数据库连通性

    检查项：
    1. sqlite: 借出连接并执行 SELECT 1
    2. pool: 连接池大小与空闲连接数
    """
    checks: dict = {}
    all_ok = True

    try:
        store_group = request.app.state.store_group
        async with store_group.session() as stores:
            cursor = await stores.conn.execute("SELECT 1")
            await cursor.fetchone()
        checks["sqlite"] = "ok"
        checks["pool"] = {
            "size": store_group.pool.size,
            "available": store_group.pool.available,
        }
    except Exception as e:
        log.warning("readiness_check_failed", error=str(e))
        checks["sqlite"] = "unavailable"
        all_ok = False

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
