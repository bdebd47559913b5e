"""Integration tests for task curation endpoints."""

from httpx import AsyncClient


def _task(category_id: str, title: str, **fields):
    return {"title": title, "description": f"How to {title.lower()}", "category": category_id, **fields}


class TestCreateTask:
    async def test_appends_within_category(self, client: AsyncClient, admin_headers, make_category):
        category, _ = await make_category("Upon Arrival", tasks=0)
        first = await client.post("/api/tasks", json=_task(category.id, "Register address"), headers=admin_headers)
        second = await client.post(
            "/api/tasks",
            json=_task(
                category.id,
                "Open a bank account",
                difficulty="easy",
                estimatedDuration="1-2 hours",
                externalLinks=[{"title": "Bank", "url": "https://bank.example.com"}],
                tips=["Bring your passport"],
            ),
            headers=admin_headers,
        )
        assert first.status_code == second.status_code == 201
        assert first.json()["data"]["order"] == 1
        data = second.json()["data"]
        assert data["order"] == 2
        assert data["categoryId"] == category.id
        assert data["externalLinks"] == [{"title": "Bank", "url": "https://bank.example.com", "description": ""}]
        assert data["tips"] == ["Bring your passport"]

    async def test_unknown_category(self, client: AsyncClient, admin_headers, database):
        response = await client.post("/api/tasks", json=_task("missing", "Anything"), headers=admin_headers)
        assert response.status_code == 400
        assert "category" in response.json()["fields"]

    async def test_missing_title(self, client: AsyncClient, admin_headers, make_category):
        category, _ = await make_category("Ongoing", tasks=0)
        response = await client.post("/api/tasks", json=_task(category.id, ""), headers=admin_headers)
        assert response.status_code == 400
        assert "title" in response.json()["fields"]

    async def test_bad_difficulty(self, client: AsyncClient, admin_headers, make_category):
        category, _ = await make_category("Ongoing", tasks=0)
        response = await client.post(
            "/api/tasks", json=_task(category.id, "Learn", difficulty="extreme"), headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_thirteenth_task_rejected(self, client: AsyncClient, admin_headers, make_category):
        category, _ = await make_category("Busy", tasks=12)
        response = await client.post("/api/tasks", json=_task(category.id, "One too many"), headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Maximum of 12 tasks per category allowed"


class TestReadTasks:
    async def test_filter_by_category(self, client: AsyncClient, paid_headers, make_category):
        first, _ = await make_category("First", tasks=2)
        await make_category("Second", tasks=1)
        response = await client.get(f"/api/tasks?category={first.id}", headers=paid_headers)
        assert [t["title"] for t in response.json()["data"]] == ["First task 1", "First task 2"]

    async def test_sorted_by_category_then_task_order(self, client: AsyncClient, paid_headers, make_category):
        await make_category("First", tasks=2)
        await make_category("Second", tasks=1)
        response = await client.get("/api/tasks", headers=paid_headers)
        assert [t["title"] for t in response.json()["data"]] == ["First task 1", "First task 2", "Second task 1"]

    async def test_inactive_hidden_from_users(self, client: AsyncClient, admin_headers, paid_headers, make_category):
        _, tasks = await make_category("First", tasks=2)
        await client.patch(f"/api/tasks/{tasks[1].id}", json={"isActive": False}, headers=admin_headers)

        assert len((await client.get("/api/tasks", headers=paid_headers)).json()["data"]) == 1
        assert len((await client.get("/api/tasks", headers=admin_headers)).json()["data"]) == 2
        assert (await client.get(f"/api/tasks/{tasks[1].id}", headers=paid_headers)).status_code == 404


class TestUpdateTask:
    async def test_reports_changes(self, client: AsyncClient, admin_headers, make_category):
        _, tasks = await make_category("First", tasks=1)
        response = await client.patch(
            f"/api/tasks/{tasks[0].id}",
            json={"title": "Renamed", "tips": ["tip"], "isRequired": True},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["changes"] == ["title", "required", "tips"]
        assert body["data"]["id"] == tasks[0].id

    async def test_move_appends_and_compacts(self, client: AsyncClient, admin_headers, make_category):
        source, source_tasks = await make_category("Source", tasks=3)
        target, _ = await make_category("Target", tasks=2)

        response = await client.patch(
            f"/api/tasks/{source_tasks[0].id}", json={"category": target.id}, headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["changes"] == ["category"]
        assert response.json()["data"]["order"] == 3

        remaining = (await client.get(f"/api/tasks?category={source.id}", headers=admin_headers)).json()["data"]
        assert [(t["title"], t["order"]) for t in remaining] == [("Source task 2", 1), ("Source task 3", 2)]

    async def test_move_from_high_position(self, client: AsyncClient, admin_headers, make_category):
        source, source_tasks = await make_category("Source", tasks=5)
        target, _ = await make_category("Target", tasks=2)

        response = await client.patch(
            f"/api/tasks/{source_tasks[4].id}", json={"category": target.id}, headers=admin_headers,
        )
        assert response.json()["data"]["order"] == 3

        moved = (await client.get(f"/api/tasks?category={target.id}", headers=admin_headers)).json()["data"]
        assert [t["order"] for t in moved] == [1, 2, 3]
        assert moved[-1]["id"] == source_tasks[4].id
        left = (await client.get(f"/api/tasks?category={source.id}", headers=admin_headers)).json()["data"]
        assert [t["order"] for t in left] == [1, 2, 3, 4]

    async def test_reactivation_respects_ceiling(self, client: AsyncClient, admin_headers, make_category):
        category, _ = await make_category("Busy", tasks=11)
        hidden = await client.post(
            "/api/tasks",
            json=_task(category.id, "Hidden", isActive=False),
            headers=admin_headers,
        )
        assert hidden.status_code == 201
        twelfth = await client.post("/api/tasks", json=_task(category.id, "Twelfth"), headers=admin_headers)
        assert twelfth.status_code == 201

        response = await client.patch(
            f"/api/tasks/{hidden.json()['data']['id']}", json={"isActive": True}, headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Maximum of 12 tasks per category allowed"

        listing = (await client.get(f"/api/tasks?category={category.id}", headers=admin_headers)).json()["data"]
        assert sum(t["isActive"] for t in listing) == 12

    async def test_move_to_full_category_rejected(self, client: AsyncClient, admin_headers, make_category):
        _, source_tasks = await make_category("Source", tasks=2)
        full, _ = await make_category("Full", tasks=12)
        response = await client.patch(
            f"/api/tasks/{source_tasks[0].id}", json={"category": full.id}, headers=admin_headers,
        )
        assert response.status_code == 400


class TestDeleteTask:
    async def test_last_task_kept(self, client: AsyncClient, admin_headers, make_category):
        _, tasks = await make_category("Lonely", tasks=1)
        response = await client.delete(f"/api/tasks/{tasks[0].id}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete the last task in a category"

    async def test_delete_compacts(self, client: AsyncClient, admin_headers, make_category):
        category, tasks = await make_category("Three", tasks=3)
        response = await client.delete(f"/api/tasks/{tasks[1].id}", headers=admin_headers)
        assert response.status_code == 200

        remaining = (await client.get(f"/api/tasks?category={category.id}", headers=admin_headers)).json()["data"]
        assert [(t["id"], t["order"]) for t in remaining] == [(tasks[0].id, 1), (tasks[2].id, 2)]

    async def test_unknown(self, client: AsyncClient, admin_headers):
        response = await client.delete("/api/tasks/missing", headers=admin_headers)
        assert response.status_code == 404
