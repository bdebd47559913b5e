"""Integration tests for single-item and batch reordering."""

import pytest
from httpx import AsyncClient


async def _category_orders(client: AsyncClient, headers) -> list[tuple[str, int]]:
    listing = (await client.get("/api/categories", headers=headers)).json()["data"]
    return [(c["displayName"], c["order"]) for c in listing]


@pytest.fixture
async def four_categories(make_category):
    return {name: (await make_category(name, tasks=1))[0].id for name in ("A", "B", "C", "D")}


class TestMoveCategory:
    async def test_move_up(self, client: AsyncClient, admin_headers, four_categories):
        response = await client.patch(
            f"/api/categories/{four_categories['D']}/order", json={"newOrder": 2}, headers=admin_headers,
        )
        assert response.status_code == 200
        assert [(c["displayName"], c["order"]) for c in response.json()["data"]] == [
            ("A", 1), ("D", 2), ("B", 3), ("C", 4),
        ]

    async def test_same_position_changes_nothing(self, client: AsyncClient, admin_headers, four_categories):
        before = await _category_orders(client, admin_headers)
        response = await client.patch(
            f"/api/categories/{four_categories['B']}/order", json={"newOrder": 2}, headers=admin_headers,
        )
        assert response.status_code == 200
        assert await _category_orders(client, admin_headers) == before

    @pytest.mark.parametrize("new_order", [0, 5, -1, 1.5, "2", None, True])
    async def test_invalid_order(self, client: AsyncClient, admin_headers, four_categories, new_order):
        response = await client.patch(
            f"/api/categories/{four_categories['A']}/order", json={"newOrder": new_order}, headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid order value"

    async def test_unknown_category(self, client: AsyncClient, admin_headers, four_categories):
        response = await client.patch("/api/categories/nope/order", json={"newOrder": 1}, headers=admin_headers)
        assert response.status_code == 404


class TestMoveTask:
    async def test_move_down(self, client: AsyncClient, admin_headers, make_category):
        _, tasks = await make_category("Arrival", tasks=3)
        t1, t2, t3 = (t.id for t in tasks)
        response = await client.patch(f"/api/tasks/{t1}/order", json={"newOrder": 3}, headers=admin_headers)
        assert response.status_code == 200
        assert [(t["id"], t["order"]) for t in response.json()["data"]] == [(t2, 1), (t3, 2), (t1, 3)]

    async def test_other_categories_untouched(self, client: AsyncClient, admin_headers, make_category):
        _, first = await make_category("First", tasks=2)
        second, other = await make_category("Second", tasks=2)
        await client.patch(f"/api/tasks/{first[1].id}/order", json={"newOrder": 1}, headers=admin_headers)

        listing = (await client.get(f"/api/tasks?category={second.id}", headers=admin_headers)).json()["data"]
        assert [(t["id"], t["order"]) for t in listing] == [(other[0].id, 1), (other[1].id, 2)]

    async def test_beyond_category_size(self, client: AsyncClient, admin_headers, make_category):
        _, tasks = await make_category("Arrival", tasks=2)
        response = await client.patch(f"/api/tasks/{tasks[0].id}/order", json={"newOrder": 3}, headers=admin_headers)
        assert response.status_code == 400


class TestBatchReorder:
    async def test_categories(self, client: AsyncClient, admin_headers, four_categories):
        ids = four_categories
        payload = {"categories": [
            {"id": ids["A"], "order": 4},
            {"id": ids["B"], "order": 3},
            {"id": ids["C"], "order": 2},
            {"id": ids["D"], "order": 1},
        ]}
        response = await client.patch("/api/categories/reorder", json=payload, headers=admin_headers)
        assert response.status_code == 200
        assert [c["displayName"] for c in response.json()["data"]] == ["D", "C", "B", "A"]

    async def test_categories_unknown_id(self, client: AsyncClient, admin_headers, four_categories):
        payload = {"categories": [{"id": "ghost", "order": 1}]}
        response = await client.patch("/api/categories/reorder", json=payload, headers=admin_headers)
        assert response.status_code == 404

    async def test_tasks(self, client: AsyncClient, admin_headers, make_category):
        category, tasks = await make_category("Arrival", tasks=3)
        payload = {
            "category": category.id,
            "tasks": [{"id": tasks[0].id, "order": 2}, {"id": tasks[1].id, "order": 1}],
        }
        response = await client.patch("/api/tasks/reorder", json=payload, headers=admin_headers)
        assert response.status_code == 200
        assert [t["id"] for t in response.json()["data"]] == [tasks[1].id, tasks[0].id, tasks[2].id]

    async def test_tasks_from_another_category(self, client: AsyncClient, admin_headers, make_category):
        category, _ = await make_category("Arrival", tasks=1)
        _, foreign = await make_category("Other", tasks=1)
        payload = {"category": category.id, "tasks": [{"id": foreign[0].id, "order": 1}]}
        response = await client.patch("/api/tasks/reorder", json=payload, headers=admin_headers)
        assert response.status_code == 404

    async def test_requires_admin(self, client: AsyncClient, paid_headers, four_categories):
        response = await client.patch("/api/categories/reorder", json={"categories": []}, headers=paid_headers)
        assert response.status_code == 403
