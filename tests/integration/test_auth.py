import pytest


@pytest.mark.integration
class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_login_returns_token(self, client, world, password) -> None:
        resp = await client.post(
            "/api/auth/login", json={"email": "alice@acme.com", "password": password}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["user_id"] == world.alice_id
        assert data["role"] == "CLIENT"
        assert data["token"]
        assert "session=" in resp.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_login_email_case_insensitive(self, client, world, password) -> None:
        resp = await client.post(
            "/api/auth/login", json={"email": "ALICE@acme.com", "password": password}
        )
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_bad_credentials(self, client, world) -> None:
        resp = await client.post(
            "/api/auth/login", json={"email": "alice@acme.com", "password": "nope"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
        assert "session" not in resp.cookies

    @pytest.mark.asyncio
    async def test_unknown_user_matches_bad_password(self, client, world) -> None:
        resp = await client.post(
            "/api/auth/login", json={"email": "nobody@acme.com", "password": "nope"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_me(self, client, world, login) -> None:
        headers = await login("designer@agency.com")
        resp = await client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "user_id": world.designer_id,
            "email": "designer@agency.com",
            "role": "DESIGNER",
            "name": "Dana",
        }

    @pytest.mark.asyncio
    async def test_logout_invalidates_token(self, client, world, login) -> None:
        headers = await login("alice@acme.com")
        resp = await client.post("/api/auth/logout", headers=headers)
        assert resp.status_code == 200
        resp = await client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
