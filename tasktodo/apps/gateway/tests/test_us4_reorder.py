"""US-4 批量重排测试

测试内容：
1. /api/tasks/reorder 不会被当作 task_id 匹配
2. 返回按 manual_order 升序的完整列表 + count
3. 他人任务被忽略且不受影响
4. 事务失败返回 503 且顺序不变
"""

from httpx import AsyncClient

_FAIL_TRIGGER = """
CREATE TRIGGER fail_reorder_999
BEFORE UPDATE OF manual_order ON tasks
WHEN NEW.manual_order = 999
BEGIN
    SELECT RAISE(ABORT, 'simulated failure');
END;
"""


def _order(resp) -> list[str]:
    return [t["title"] for t in resp.json()["data"]]


class TestReorder:
    """批量重排"""

    async def test_reorder_returns_full_list_in_new_order(
        self, client: AsyncClient, alice, create_task
    ):
        t1 = await create_task(alice, "T1", 1)
        t2 = await create_task(alice, "T2", 2)
        t3 = await create_task(alice, "T3", 3)

        resp = await client.patch(
            "/api/tasks/reorder",
            json={
                "tasks": [
                    {"id": t3["id"], "manual_order": 1},
                    {"id": t1["id"], "manual_order": 2},
                    {"id": t2["id"], "manual_order": 3},
                ]
            },
            headers=alice,
        )
        assert resp.status_code == 200
        assert _order(resp) == ["T3", "T1", "T2"]
        assert resp.json()["count"] == 3
        assert [t["manual_order"] for t in resp.json()["data"]] == [1, 2, 3]

    async def test_partial_batch_returns_all_tasks(self, client: AsyncClient, alice, create_task):
        t1 = await create_task(alice, "T1", 1)
        await create_task(alice, "T2", 2)

        resp = await client.patch(
            "/api/tasks/reorder",
            json={"tasks": [{"id": t1["id"], "manual_order": 5}]},
            headers=alice,
        )
        assert _order(resp) == ["T2", "T1"]
        assert resp.json()["count"] == 2

    async def test_foreign_ids_are_skipped(self, client: AsyncClient, alice, bob, create_task):
        mine = await create_task(alice, "mine", 1)
        theirs = await create_task(bob, "theirs", 1)

        resp = await client.patch(
            "/api/tasks/reorder",
            json={
                "tasks": [
                    {"id": theirs["id"], "manual_order": 99},
                    {"id": mine["id"], "manual_order": 7},
                ]
            },
            headers=alice,
        )
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json()["data"]] == [mine["id"]]
        assert resp.json()["data"][0]["manual_order"] == 7

        resp = await client.get(f"/api/tasks/{theirs['id']}", headers=bob)
        assert resp.json()["data"]["manual_order"] == 1

    async def test_empty_batch(self, client: AsyncClient, alice, create_task):
        await create_task(alice, "T1", 1)
        resp = await client.patch("/api/tasks/reorder", json={"tasks": []}, headers=alice)
        assert resp.status_code == 200
        assert _order(resp) == ["T1"]

    async def test_missing_tasks_field_returns_400(self, client: AsyncClient, alice):
        resp = await client.patch("/api/tasks/reorder", json={}, headers=alice)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_non_integer_order_returns_400(self, client: AsyncClient, alice, create_task):
        t1 = await create_task(alice, "T1", 1)
        resp = await client.patch(
            "/api/tasks/reorder",
            json={"tasks": [{"id": t1["id"], "manual_order": "first"}]},
            headers=alice,
        )
        assert resp.status_code == 400

    async def test_out_of_range_order_returns_400_not_503(
        self, client: AsyncClient, alice, create_task
    ):
        """非法排序值是客户端错误，不可重试，且整批不生效"""
        t1 = await create_task(alice, "T1", 1)
        t2 = await create_task(alice, "T2", 2)
        resp = await client.patch(
            "/api/tasks/reorder",
            json={
                "tasks": [
                    {"id": t1["id"], "manual_order": 5},
                    {"id": t2["id"], "manual_order": 2**63},
                ]
            },
            headers=alice,
        )
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "retryable" not in error
        assert error["details"][0]["field"] == "tasks.1.manual_order"

        resp = await client.get(
            "/api/tasks", params={"sort_by": "manual_order", "sort_order": "asc"}, headers=alice
        )
        assert [t["manual_order"] for t in resp.json()["data"]] == [1, 2]

    async def test_unauthenticated_returns_401(self, client: AsyncClient):
        resp = await client.patch("/api/tasks/reorder", json={"tasks": []})
        assert resp.status_code == 401


class TestReorderFailure:
    """事务失败"""

    async def test_failed_batch_returns_503_and_keeps_order(
        self, client: AsyncClient, test_app, alice, create_task
    ):
        t1 = await create_task(alice, "T1", 1)
        t2 = await create_task(alice, "T2", 2)

        async with test_app.state.store_group.session() as stores:
            await stores.conn.execute(_FAIL_TRIGGER)
            await stores.conn.commit()

        resp = await client.patch(
            "/api/tasks/reorder",
            json={
                "tasks": [
                    {"id": t1["id"], "manual_order": 2},
                    {"id": t2["id"], "manual_order": 999},
                ]
            },
            headers=alice,
        )
        assert resp.status_code == 503
        error = resp.json()["error"]
        assert error["code"] == "STORE_UNAVAILABLE"
        assert error["retryable"] is True
        assert "simulated" not in error["message"]

        resp = await client.get(
            "/api/tasks",
            params={"sort_by": "manual_order", "sort_order": "asc"},
            headers=alice,
        )
        assert [(t["title"], t["manual_order"]) for t in resp.json()["data"]] == [
            ("T1", 1),
            ("T2", 2),
        ]
