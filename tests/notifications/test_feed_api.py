"""Integration tests for the notification feed."""

from httpx import AsyncClient

FEED = "/api/dashboard/notifications"


class TestFeed:
    async def test_content_changes_reach_users(self, client: AsyncClient, admin_headers, free_headers, make_category):
        category, _ = await make_category("Before Arrival", tasks=0)
        await client.patch(f"/api/categories/{category.id}", json={"description": "Prep"}, headers=admin_headers)
        await client.patch(f"/api/categories/{category.id}", json={"icon": "plane"}, headers=admin_headers)

        response = await client.get(FEED, headers=free_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert data["unreadCount"] == 2
        titles = [n["title"] for n in data["notifications"]]
        assert sorted(titles) == ["Category Updated", "New Category Added"]
        updated = next(n for n in data["notifications"] if n["title"] == "Category Updated")
        assert updated["metadata"]["changes"] == ["description", "icon"]
        assert updated["metadata"]["entityId"] == category.id
        assert updated["isRead"] is False

    async def test_fetch_marks_everything_read(self, client: AsyncClient, free_headers, make_category):
        await make_category("Before Arrival", tasks=0)
        await client.get(FEED, headers=free_headers)

        data = (await client.get(FEED, headers=free_headers)).json()["data"]
        assert data["unreadCount"] == 0
        assert all(n["isRead"] for n in data["notifications"])

        unread = (await client.get(f"{FEED}?unreadOnly=true", headers=free_headers)).json()["data"]
        assert unread["notifications"] == []

    async def test_pagination(self, client: AsyncClient, free_headers, make_category):
        await make_category("Before Arrival", tasks=2)
        page = (await client.get(f"{FEED}?limit=2&offset=0", headers=free_headers)).json()["data"]
        assert page["total"] == 3
        assert len(page["notifications"]) == 2
        assert page["hasMore"] is True

        rest = (await client.get(f"{FEED}?limit=2&offset=2", headers=free_headers)).json()["data"]
        assert len(rest["notifications"]) == 1
        assert rest["hasMore"] is False

    async def test_limit_bounds(self, client: AsyncClient, free_headers):
        assert (await client.get(f"{FEED}?limit=51", headers=free_headers)).status_code == 400

    async def test_admins_receive_nothing(self, client: AsyncClient, admin_headers, make_category):
        await make_category("Before Arrival", tasks=1)
        data = (await client.get(FEED, headers=admin_headers)).json()["data"]
        assert data["total"] == 0


class TestPostAndMarkRead:
    async def test_post_own_notification(self, client: AsyncClient, free_headers):
        response = await client.post(
            FEED,
            json={"title": "<b>Reminder</b>", "message": "Book the appointment", "actionUrl": "/dashboard"},
            headers=free_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Reminder"
        assert data["actionUrl"] == "/dashboard"
        assert data["isRead"] is False

    async def test_rejects_foreign_action_url(self, client: AsyncClient, free_headers):
        response = await client.post(
            FEED,
            json={"title": "Hi", "message": "Click", "actionUrl": "https://evil.example.net/phish"},
            headers=free_headers,
        )
        assert response.status_code == 400

    async def test_mark_all_read(self, client: AsyncClient, free_headers, make_category):
        await make_category("Before Arrival", tasks=0)
        response = await client.patch(FEED, headers=free_headers)
        assert response.status_code == 200
        assert response.json()["data"]["lastNotificationReadAt"]

        data = (await client.get(f"{FEED}?unreadOnly=true", headers=free_headers)).json()["data"]
        assert data["unreadCount"] == 0
