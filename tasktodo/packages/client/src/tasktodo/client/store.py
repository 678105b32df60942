"""ClientStore -- 客户端单一状态容器

状态为不可变 AppState 快照，只能通过 action 整体替换；
每次替换同步通知所有订阅者。

会话模式：
- anonymous: 未登录，任务操作不可用
- authenticated: 所有变更经 API，缓存以服务端返回的记录为准
- demo: 仅本地状态，不发起任何网络请求

乐观更新（编辑、删除、拖拽排序）先写入本地猜测，
成功后以服务端结果覆盖，失败则恢复快照并记录 last_error。
"""

from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

import structlog
from tasktodo.core.models import Priority, SessionMode
from ulid import ULID

from .api import TaskTodoClient
from .exceptions import (
    ApiAuthError,
    ApiError,
    ApiNotFoundError,
    ApiValidationError,
)
from .models import AppState, StoreError, TaskFilters, TaskRecord, UiModals, UserRecord

log = structlog.get_logger()

Listener = Callable[[AppState], None]

DEMO_USER_ID = "demo_user"
DEMO_EMAIL = "demo@example.com"

# 面向用户的通用提示，不透出内部细节
MSG_INVALID_CREDENTIALS = "Invalid email or password"
MSG_SESSION_EXPIRED = "Your session has expired, please log in again"
MSG_NOT_FOUND = "This task no longer exists"
MSG_SERVER = "Something went wrong, please try again"
MSG_NOT_SIGNED_IN = "Please log in first"


def _demo_user() -> UserRecord:
    now = datetime.now(UTC)
    return UserRecord(
        id=DEMO_USER_ID,
        email=DEMO_EMAIL,
        is_demo=True,
        created_at=now,
        updated_at=now,
    )


def move_within(
    tasks: tuple[TaskRecord, ...], dragged_id: str, drop_id: str
) -> tuple[TaskRecord, ...] | None:
    """将 dragged 移到 drop 的位置，并按新位置重写 manual_order（1 起）

    Returns:
        新序列；任一 id 不在列表中或两者相同时返回 None
    """
    ids = [t.id for t in tasks]
    if dragged_id == drop_id or dragged_id not in ids or drop_id not in ids:
        return None
    reordered = list(tasks)
    # dragged 占据 drop 原来的下标
    dragged = reordered.pop(ids.index(dragged_id))
    reordered.insert(ids.index(drop_id), dragged)
    return tuple(
        t.model_copy(update={"manual_order": i + 1}) for i, t in enumerate(reordered)
    )


class ClientStore:
    """客户端状态容器"""

    def __init__(self, api: TaskTodoClient, initial: AppState | None = None) -> None:
        self._api = api
        self._state = initial or AppState()
        self._listeners: list[Listener] = []
        # 会话代数：登出/切换会话后丢弃旧会话的在途响应
        self._epoch = 0
        # 列表请求代数：只应用最新一次列表请求的结果
        self._fetch_seq = 0

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册订阅者，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._state)

    # ============ 错误处理 ============

    def _record_error(self, error: ApiError, *, auth_message: str = MSG_SESSION_EXPIRED) -> None:
        """将 API 异常转为用户可见的 last_error；401 时清空会话"""
        if isinstance(error, ApiValidationError):
            store_error = StoreError(
                kind="validation",
                message=error.message,
                field_errors=error.field_errors,
            )
        elif isinstance(error, ApiAuthError):
            store_error = StoreError(kind="auth", message=auth_message)
        elif isinstance(error, ApiNotFoundError):
            store_error = StoreError(kind="not_found", message=MSG_NOT_FOUND)
        else:
            store_error = StoreError(kind="server", message=MSG_SERVER)

        log.info(
            "client_action_failed",
            kind=store_error.kind,
            code=error.code,
            status_code=error.status_code,
        )

        if isinstance(error, ApiAuthError) and self._state.session_mode == SessionMode.AUTHENTICATED:
            self._reset_session(last_error=store_error)
        else:
            self._set(last_error=store_error)

    def _reset_session(self, last_error: StoreError | None = None) -> None:
        self._epoch += 1
        self._api.set_token(None)
        self._set(
            auth_token=None,
            current_user=None,
            session_mode=SessionMode.ANONYMOUS,
            task_list=(),
            task_count=0,
            task_filters=TaskFilters(),
            ui_modals=UiModals(),
            last_error=last_error,
        )

    def _require_session(self) -> bool:
        if self._state.session_mode == SessionMode.ANONYMOUS:
            self._set(last_error=StoreError(kind="auth", message=MSG_NOT_SIGNED_IN))
            return False
        return True

    @property
    def _is_demo(self) -> bool:
        return self._state.session_mode == SessionMode.DEMO

    # ============ 会话 ============

    async def _start_session(self, token: str, user: UserRecord) -> None:
        self._epoch += 1
        self._api.set_token(token)
        self._set(
            auth_token=token,
            current_user=user,
            session_mode=SessionMode.AUTHENTICATED,
            task_list=(),
            task_count=0,
            task_filters=TaskFilters(),
            last_error=None,
        )
        await self.refresh_tasks()

    async def signup(self, email: str, password: str) -> bool:
        try:
            token, user = await self._api.signup(email, password)
        except ApiError as e:
            self._record_error(e, auth_message=MSG_INVALID_CREDENTIALS)
            return False
        await self._start_session(token, user)
        return True

    async def login(self, email: str, password: str) -> bool:
        try:
            token, user = await self._api.login(email, password)
        except ApiError as e:
            self._record_error(e, auth_message=MSG_INVALID_CREDENTIALS)
            return False
        await self._start_session(token, user)
        return True

    async def restore_session(self, token: str) -> bool:
        """用持久化的 token 恢复会话（token 失效时回到匿名态）"""
        self._api.set_token(token)
        try:
            user = await self._api.get_current_user()
        except ApiAuthError:
            self._reset_session()
            return False
        except ApiError as e:
            self._api.set_token(self._state.auth_token)
            self._record_error(e)
            return False
        await self._start_session(token, user)
        return True

    def start_demo(self) -> None:
        """进入演示模式：本地用户，空任务列表，不发网络请求"""
        self._epoch += 1
        self._api.set_token(None)
        self._set(
            auth_token=None,
            current_user=_demo_user(),
            session_mode=SessionMode.DEMO,
            task_list=(),
            task_count=0,
            task_filters=TaskFilters(),
            ui_modals=UiModals(show_onboarding_overlay=True),
            last_error=None,
        )

    def logout(self) -> None:
        """一次状态替换内清空 token、用户、任务缓存与筛选条件"""
        self._reset_session()

    # ============ 列表 ============

    async def set_filters(self, **changes: Any) -> None:
        """合并筛选条件并重新拉取；除显式翻页外 offset 归零"""
        merged = self._state.task_filters.model_dump()
        merged.update(changes)
        if "offset" not in changes:
            merged["offset"] = 0
        self._set(task_filters=TaskFilters.model_validate(merged))
        await self.refresh_tasks()

    async def refresh_tasks(self) -> None:
        if self._state.session_mode != SessionMode.AUTHENTICATED:
            return
        self._fetch_seq += 1
        seq, epoch = self._fetch_seq, self._epoch
        try:
            page = await self._api.list_tasks(self._state.task_filters)
        except ApiError as e:
            if epoch == self._epoch:
                self._record_error(e)
            return
        if seq != self._fetch_seq or epoch != self._epoch:
            log.debug("stale_task_list_dropped", seq=seq)
            return
        self._set(task_list=tuple(page.data), task_count=page.count)

    # ============ 任务变更 ============

    def _next_manual_order(self) -> int:
        return max((t.manual_order for t in self._state.task_list), default=0) + 1

    async def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        due_date: date | None = None,
        priority: Priority = Priority.MEDIUM,
        manual_order: int | None = None,
    ) -> TaskRecord | None:
        if not self._require_session():
            return None
        order = manual_order if manual_order is not None else self._next_manual_order()

        if self._is_demo:
            now = datetime.now(UTC)
            task = TaskRecord(
                id=f"demo-{ULID()}",
                user_id=DEMO_USER_ID,
                title=title,
                description=description,
                due_date=due_date,
                priority=priority,
                is_completed=False,
                manual_order=order,
                created_at=now,
                updated_at=now,
            )
            self._set(
                task_list=(*self._state.task_list, task),
                task_count=self._state.task_count + 1,
                ui_modals=self._state.ui_modals.model_copy(update={"show_new_task_modal": False}),
                last_error=None,
            )
            return task

        epoch = self._epoch
        try:
            task = await self._api.create_task(
                title,
                order,
                description=description,
                due_date=due_date,
                priority=priority,
            )
        except ApiError as e:
            if epoch == self._epoch:
                self._record_error(e)
            return None
        if epoch != self._epoch:
            return task
        self._set(
            task_list=(*self._state.task_list, task),
            task_count=self._state.task_count + 1,
            ui_modals=self._state.ui_modals.model_copy(update={"show_new_task_modal": False}),
            last_error=None,
        )
        await self.refresh_tasks()
        return task

    async def update_task(self, task_id: str, **changes: Any) -> TaskRecord | None:
        """乐观编辑：先写本地，成功后以服务端记录覆盖，失败回滚"""
        if not self._require_session():
            return None
        snapshot = self._state.task_list
        current = next((t for t in snapshot if t.id == task_id), None)
        if current is not None:
            guess = current.model_copy(update=changes)
            self._set(task_list=tuple(guess if t.id == task_id else t for t in snapshot))

        if self._is_demo:
            if current is None:
                self._set(last_error=StoreError(kind="not_found", message=MSG_NOT_FOUND))
                return None
            updated = self._state.task_list[[t.id for t in self._state.task_list].index(task_id)]
            updated = updated.model_copy(update={"updated_at": datetime.now(UTC)})
            self._set(
                task_list=tuple(updated if t.id == task_id else t for t in self._state.task_list),
                last_error=None,
            )
            return updated

        epoch = self._epoch
        try:
            task = await self._api.update_task(task_id, **changes)
        except ApiError as e:
            if epoch == self._epoch:
                self._set(task_list=snapshot)
                self._record_error(e)
            return None
        if epoch != self._epoch:
            return task
        self._set(
            task_list=tuple(task if t.id == task_id else t for t in self._state.task_list),
            last_error=None,
        )
        await self.refresh_tasks()
        return task

    async def toggle_completed(self, task_id: str) -> TaskRecord | None:
        current = next((t for t in self._state.task_list if t.id == task_id), None)
        if current is None:
            self._set(last_error=StoreError(kind="not_found", message=MSG_NOT_FOUND))
            return None
        return await self.update_task(task_id, is_completed=not current.is_completed)

    async def delete_task(self, task_id: str) -> bool:
        """乐观删除：先移除，失败时恢复"""
        if not self._require_session():
            return False
        snapshot, snapshot_count = self._state.task_list, self._state.task_count
        remaining = tuple(t for t in snapshot if t.id != task_id)
        removed = len(snapshot) - len(remaining)
        self._set(task_list=remaining, task_count=max(snapshot_count - removed, 0))

        if self._is_demo:
            if not removed:
                self._set(last_error=StoreError(kind="not_found", message=MSG_NOT_FOUND))
                return False
            self._set(
                ui_modals=self._state.ui_modals.model_copy(update={"show_confirmation_modal": False}),
                last_error=None,
            )
            return True

        epoch = self._epoch
        try:
            await self._api.delete_task(task_id)
        except ApiError as e:
            if epoch == self._epoch:
                self._set(task_list=snapshot, task_count=snapshot_count)
                self._record_error(e)
            return False
        if epoch == self._epoch:
            self._set(
                ui_modals=self._state.ui_modals.model_copy(update={"show_confirmation_modal": False}),
                last_error=None,
            )
            await self.refresh_tasks()
        return True

    async def move_task(self, dragged_id: str, drop_id: str) -> bool:
        """拖拽排序：可见列表重新编号后整体提交

        成功时缓存替换为服务端返回的完整有序列表；失败时恢复拖拽前快照。
        """
        if not self._require_session():
            return False
        snapshot, snapshot_count = self._state.task_list, self._state.task_count
        reordered = move_within(snapshot, dragged_id, drop_id)
        if reordered is None:
            return False
        self._set(task_list=reordered)

        if self._is_demo:
            self._set(last_error=None)
            return True

        epoch = self._epoch
        try:
            page = await self._api.reorder_tasks([(t.id, t.manual_order) for t in reordered])
        except ApiError as e:
            if epoch == self._epoch:
                self._set(task_list=snapshot, task_count=snapshot_count)
                self._record_error(e)
            return False
        if epoch != self._epoch:
            return True
        # 在途的列表请求结果已过时
        self._fetch_seq += 1
        self._set(task_list=tuple(page.data), task_count=page.count, last_error=None)
        return True

    # ============ UI ============

    def set_modal(self, name: str, visible: bool) -> None:
        if name not in UiModals.model_fields:
            raise ValueError(f"Unknown modal: {name}")
        self._set(ui_modals=self._state.ui_modals.model_copy(update={name: visible}))

    def clear_error(self) -> None:
        self._set(last_error=None)

