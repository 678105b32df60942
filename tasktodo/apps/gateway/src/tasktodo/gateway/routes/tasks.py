"""任务路由

GET    /api/tasks: 筛选/排序/分页查询，返回 {data, count}。
POST   /api/tasks: 创建任务。
PATCH  /api/tasks/reorder: 批量重排（必须先于 /api/tasks/{task_id} 注册）。
GET    /api/tasks/{task_id}: 查询单个任务。
PATCH  /api/tasks/{task_id}: 局部更新。
DELETE /api/tasks/{task_id}: 删除，返回 204。

不存在与不属于调用者的任务统一返回 404。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse, Response
from tasktodo.core.config import DEFAULT_LIST_LIMIT, DEFAULT_LIST_OFFSET
from tasktodo.core.models import (
    Priority,
    ReorderItem,
    SortField,
    SortOrder,
    Task,
    TaskCreate,
    TaskPatch,
    TaskQuery,
)

from ..deps import get_current_user_id, get_store_group
from ..services.task_service import TaskService

router = APIRouter()


class ReorderRequest(BaseModel):
    """批量重排请求体"""

    tasks: list[ReorderItem] = Field(description="(id, manual_order) 赋值列表")


def task_to_dict(task: Task) -> dict:
    """序列化任务"""
    return {
        "id": task.task_id,
        "user_id": task.user_id,
        "title": task.title,
        "description": task.description,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "priority": task.priority.value,
        "is_completed": task.is_completed,
        "manual_order": task.manual_order,
        "created_at": task.created_at.isoformat(),
        "updated_at": task.updated_at.isoformat(),
    }


def _list_payload(tasks: list[Task], count: int) -> dict:
    return {"data": [task_to_dict(t) for t in tasks], "count": count}


@router.get("/api/tasks")
async def list_tasks(
    query: str | None = Query(default=None, description="标题子串（大小写不敏感）"),
    is_completed: bool | None = Query(default=None, description="按完成状态筛选"),
    priority: Priority | None = Query(default=None, description="按优先级筛选"),
    sort_by: SortField = Query(default=SortField.CREATED_AT, description="排序字段"),
    sort_order: SortOrder = Query(default=SortOrder.DESC, description="排序方向"),
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, description="分页大小"),
    offset: int = Query(default=DEFAULT_LIST_OFFSET, ge=0, description="分页偏移"),
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
):
    """查询调用者的任务列表，count 为忽略分页的匹配总数"""
    task_query = TaskQuery(
        query=query,
        is_completed=is_completed,
        priority=priority,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset,
    )
    service = TaskService(store_group)
    tasks, count = await service.list_tasks(user_id, task_query)
    return _list_payload(tasks, count)


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: TaskCreate,
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
):
    """创建任务，owner 取自 token"""
    service = TaskService(store_group)
    task = await service.create_task(user_id, body)
    return JSONResponse(status_code=201, content={"data": task_to_dict(task)})


@router.patch("/api/tasks/reorder")
async def reorder_tasks(
    body: ReorderRequest,
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
):
    """原子批量重排，返回按 manual_order 升序的完整列表"""
    service = TaskService(store_group)
    tasks, count = await service.reorder(user_id, body.tasks)
    return _list_payload(tasks, count)


@router.get("/api/tasks/{task_id}")
async def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
):
    """查询单个任务"""
    service = TaskService(store_group)
    task = await service.get_task(user_id, task_id)
    return {"data": task_to_dict(task)}


@router.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: TaskPatch,
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
):
    """局部更新任务

    - 仅修改请求体中出现的字段，updated_at 总是刷新
    - 没有任何可更新字段返回 400
    """
    service = TaskService(store_group)
    task = await service.update_task(user_id, task_id, body)
    return {"data": task_to_dict(task)}


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    store_group=Depends(get_store_group),
):
    """删除任务"""
    service = TaskService(store_group)
    await service.delete_task(user_id, task_id)
    return Response(status_code=204)
