"""Tests for push token registration endpoints."""

import pytest

VALID_TOKEN = "ExponentPushToken[abcdef123456]"


class TestRegisterPushToken:
    """POST /api/register-push-token"""

    @pytest.mark.asyncio
    async def test_registers_valid_token(self, client, registry):
        resp = client.post("/api/register-push-token", json={"token": VALID_TOKEN})

        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "message": "Push token registered successfully",
        }
        assert await registry.tokens() == [VALID_TOKEN]

    @pytest.mark.asyncio
    async def test_duplicate_registration_is_success(self, client, registry):
        client.post("/api/register-push-token", json={"token": VALID_TOKEN})
        resp = client.post("/api/register-push-token", json={"token": VALID_TOKEN})

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert await registry.count() == 1

    @pytest.mark.parametrize(
        "body",
        [
            {"token": "bogus"},
            {"token": ""},
            {},
            {"token": None},
            {"token": 123},
            {"token": ["ExponentPushToken[abc]"]},
            {"token": {"value": "ExponentPushToken[abc]"}},
        ],
    )
    def test_rejects_invalid_token_without_write(self, client, registry, body):
        resp = client.post("/api/register-push-token", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Invalid push token"}
        assert not registry.path.exists()

    def test_missing_body_is_invalid_token(self, client, registry):
        resp = client.post("/api/register-push-token")

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Invalid push token"}
        assert not registry.path.exists()

    def test_response_carries_request_id(self, client):
        resp = client.post(
            "/api/register-push-token",
            json={"token": VALID_TOKEN},
            headers={"X-Request-ID": "req-123"},
        )

        assert resp.headers["X-Request-ID"] == "req-123"


class TestUnregisterPushToken:
    """POST /api/unregister-push-token"""

    @pytest.mark.asyncio
    async def test_removes_token(self, client, registry):
        await registry.register(VALID_TOKEN)

        resp = client.post("/api/unregister-push-token", json={"token": VALID_TOKEN})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Push token unregistered"}
        assert await registry.tokens() == []

    def test_unknown_token_still_succeeds(self, client):
        resp = client.post("/api/unregister-push-token", json={"token": "never-registered"})

        assert resp.status_code == 200
        assert resp.json()["success"] is True

    @pytest.mark.parametrize("body", [None, {"token": 123}, {"token": ["x"]}])
    def test_non_string_or_missing_token_succeeds(self, client, body):
        resp = client.post("/api/unregister-push-token", json=body)

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Push token unregistered"}
