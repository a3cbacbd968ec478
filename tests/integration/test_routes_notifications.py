import pytest


async def _complete_acme_task(client, world, login) -> None:
    headers = await login("alice@acme.com")
    resp = await client.patch(
        "/api/client/tasks",
        json={"task_id": world.acme_task_id, "status": "completed"},
        headers=headers,
    )
    assert resp.status_code == 200


@pytest.mark.integration
class TestNotificationRoutes:
    @pytest.mark.asyncio
    async def test_inbox_lists_own_notifications(self, client, world, login) -> None:
        await _complete_acme_task(client, world, login)
        headers = await login("designer@agency.com")
        resp = await client.get("/api/notifications", headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 1
        assert data[0]["title"] == "Task completed"
        assert data[0]["read"] is False

        other = await client.get("/api/notifications", headers=await login("alice@acme.com"))
        assert other.json() == []

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_read(self, client, world, login) -> None:
        await _complete_acme_task(client, world, login)
        headers = await login("designer@agency.com")
        assert (await client.get("/api/notifications/unread-count", headers=headers)).json() == {
            "unread": 1
        }

        notification_id = (await client.get("/api/notifications", headers=headers)).json()[0]["id"]
        first = await client.post(f"/api/notifications/{notification_id}/read", headers=headers)
        second = await client.post(f"/api/notifications/{notification_id}/read", headers=headers)
        assert first.status_code == second.status_code == 200
        assert first.json()["read_at"] == second.json()["read_at"]
        assert (await client.get("/api/notifications/unread-count", headers=headers)).json() == {
            "unread": 0
        }
        unread = await client.get("/api/notifications?unread_only=true", headers=headers)
        assert unread.json() == []

    @pytest.mark.asyncio
    async def test_cannot_mark_someone_elses(self, client, world, login) -> None:
        await _complete_acme_task(client, world, login)
        designer = await login("designer@agency.com")
        notification_id = (await client.get("/api/notifications", headers=designer)).json()[0]["id"]

        resp = await client.post(
            f"/api/notifications/{notification_id}/read", headers=await login("alice@acme.com")
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Notification not found"}

    @pytest.mark.asyncio
    async def test_read_all(self, client, world, login) -> None:
        headers = await login("ceo@agency.com")
        for name in ("Dee", "Eve"):
            await client.post(
                "/api/admin/leads",
                json={"name": name, "email": f"{name.lower()}@hooli.com"},
                headers=headers,
            )
        resp = await client.post("/api/notifications/read-all", headers=headers)
        assert resp.json() == {"updated": 2}
        again = await client.post("/api/notifications/read-all", headers=headers)
        assert again.json() == {"updated": 0}
