"""SC-1 端到端场景

注册 -> 创建两个任务 -> 重排 -> 按完成状态筛选 -> 完成任务 -> 再次筛选。
"""

import asyncio

from httpx import AsyncClient


class TestEndToEnd:
    """完整用户旅程"""

    async def test_signup_create_reorder_filter(self, client: AsyncClient):
        resp = await client.post(
            "/api/auth/signup", json={"email": "a@x.com", "password": "password123"}
        )
        assert resp.status_code == 201
        headers = {"Authorization": f"Bearer {resp.json()['token']}"}

        resp = await client.post(
            "/api/tasks", json={"title": "T1", "manual_order": 1}, headers=headers
        )
        assert resp.status_code == 201
        t1 = resp.json()["data"]
        assert t1["is_completed"] is False
        assert t1["priority"] == "Medium"

        resp = await client.post(
            "/api/tasks", json={"title": "T2", "manual_order": 2}, headers=headers
        )
        assert resp.status_code == 201
        t2 = resp.json()["data"]

        resp = await client.patch(
            "/api/tasks/reorder",
            json={
                "tasks": [
                    {"id": t1["id"], "manual_order": 2},
                    {"id": t2["id"], "manual_order": 1},
                ]
            },
            headers=headers,
        )
        assert resp.status_code == 200
        assert [t["title"] for t in resp.json()["data"]] == ["T2", "T1"]

        resp = await client.get("/api/tasks", params={"is_completed": "true"}, headers=headers)
        assert resp.json() == {"data": [], "count": 0}

        resp = await client.patch(
            f"/api/tasks/{t1['id']}", json={"is_completed": True}, headers=headers
        )
        assert resp.status_code == 200

        resp = await client.get("/api/tasks", params={"is_completed": "true"}, headers=headers)
        assert [t["id"] for t in resp.json()["data"]] == [t1["id"]]
        assert resp.json()["count"] == 1


class TestConcurrentReorder:
    """并发重排：每个批次整体生效，不会交错出部分结果"""

    async def test_concurrent_batches_never_interleave(self, client: AsyncClient):
        resp = await client.post(
            "/api/auth/signup", json={"email": "a@x.com", "password": "password123"}
        )
        headers = {"Authorization": f"Bearer {resp.json()['token']}"}
        ids = []
        for i in range(4):
            resp = await client.post(
                "/api/tasks", json={"title": f"T{i}", "manual_order": i}, headers=headers
            )
            ids.append(resp.json()["data"]["id"])

        forward = {"tasks": [{"id": tid, "manual_order": i} for i, tid in enumerate(ids)]}
        backward = {"tasks": [{"id": tid, "manual_order": -i} for i, tid in enumerate(ids)]}

        results = await asyncio.gather(
            *[
                client.patch("/api/tasks/reorder", json=batch, headers=headers)
                for batch in (forward, backward) * 3
            ]
        )
        assert all(r.status_code == 200 for r in results)

        resp = await client.get(
            "/api/tasks",
            params={"sort_by": "manual_order", "sort_order": "asc"},
            headers=headers,
        )
        final = {t["id"]: t["manual_order"] for t in resp.json()["data"]}
        assert final in (
            {tid: i for i, tid in enumerate(ids)},
            {tid: -i for i, tid in enumerate(ids)},
        )
