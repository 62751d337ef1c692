"""Tests for the Expo push gateway."""

import json

import httpx
import pytest
import respx

from push_bridge.errors import PushGatewayError
from push_bridge.push.gateway import MAX_BATCH_SIZE, ExpoPushGateway
from push_bridge.push.schemas import PushMessage, PushTicket

PUSH_URL = "https://push.example.com/--/api/v2/push/send"


def _messages(count: int) -> list[PushMessage]:
    return [
        PushMessage(
            to=f"ExponentPushToken[{i}]",
            title="Sale Today",
            body="Everything must go",
            data={"adId": "a1", "type": "notification_ad", "imageUrl": None},
        )
        for i in range(count)
    ]


@pytest.fixture
def gateway(test_settings):
    return ExpoPushGateway(url=PUSH_URL, settings=test_settings)


class TestChunking:
    """Tests for PushGateway.chunk."""

    @pytest.mark.parametrize(
        "count,expected",
        [(0, []), (1, [1]), (100, [100]), (101, [100, 1]), (250, [100, 100, 50])],
    )
    def test_batch_sizes(self, gateway, count, expected):
        batches = list(gateway.chunk(_messages(count)))
        assert [len(b) for b in batches] == expected

    def test_preserves_message_order(self, test_settings):
        gateway = ExpoPushGateway(url=PUSH_URL, batch_size=2, settings=test_settings)
        messages = _messages(5)

        flattened = [m for batch in gateway.chunk(messages) for m in batch]

        assert flattened == messages

    def test_rejects_batch_size_above_limit(self, test_settings):
        with pytest.raises(ValueError):
            ExpoPushGateway(url=PUSH_URL, batch_size=MAX_BATCH_SIZE + 1, settings=test_settings)


class TestPushMessage:
    """Tests for the outbound message shape."""

    def test_payload_shape(self):
        payload = _messages(1)[0].to_payload()

        assert payload == {
            "to": "ExponentPushToken[0]",
            "sound": "default",
            "title": "Sale Today",
            "body": "Everything must go",
            "data": {"adId": "a1", "type": "notification_ad", "imageUrl": None},
            "priority": "high",
            "badge": 1,
        }

    def test_unset_sound_and_badge_are_omitted(self):
        message = PushMessage(to="ExpoPushToken[a]", title="t", body="b", sound=None, badge=None)
        payload = message.to_payload()

        assert "sound" not in payload
        assert "badge" not in payload


class TestPushTicket:
    """Tests for ticket parsing."""

    def test_ok_ticket(self):
        ticket = PushTicket.from_dict({"status": "ok", "id": "r-1"}, token="t")
        assert ticket.is_ok
        assert ticket.error_code is None
        assert ticket.id == "r-1"

    def test_device_not_registered(self):
        ticket = PushTicket.from_dict(
            {
                "status": "error",
                "message": "not a registered push notification recipient",
                "details": {"error": "DeviceNotRegistered"},
            },
            token="t",
        )
        assert not ticket.is_ok
        assert ticket.error_code == "DeviceNotRegistered"
        assert ticket.is_device_not_registered

    def test_unknown_status_is_error(self):
        ticket = PushTicket.from_dict({"status": "weird"})
        assert not ticket.is_ok


class TestExpoPushGatewaySend:
    """Tests for ExpoPushGateway.send."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_returns_one_ticket_per_message(self, gateway):
        route = respx.post(PUSH_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {"status": "ok", "id": "r-0"},
                        {"status": "error", "message": "gone", "details": {"error": "DeviceNotRegistered"}},
                    ]
                },
            )
        )

        tickets = await gateway.send(_messages(2))

        assert route.called
        sent = json.loads(route.calls.last.request.content)
        assert [m["to"] for m in sent] == ["ExponentPushToken[0]", "ExponentPushToken[1]"]
        assert [t.status for t in tickets] == ["ok", "error"]
        assert tickets[1].token == "ExponentPushToken[1]"
        assert tickets[1].is_device_not_registered

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_access_token_when_configured(self, test_settings):
        gateway = ExpoPushGateway(url=PUSH_URL, access_token="secret", settings=test_settings)
        route = respx.post(PUSH_URL).mock(
            return_value=httpx.Response(200, json={"data": [{"status": "ok", "id": "r"}]})
        )

        await gateway.send(_messages(1))

        assert route.calls.last.request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_2xx_raises(self, gateway):
        respx.post(PUSH_URL).mock(return_value=httpx.Response(503, text="unavailable"))

        with pytest.raises(PushGatewayError) as exc_info:
            await gateway.send(_messages(1))

        assert exc_info.value.status_code == 503
        assert exc_info.value.response_body == "unavailable"

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_level_errors_raise(self, gateway):
        respx.post(PUSH_URL).mock(
            return_value=httpx.Response(
                200,
                json={"errors": [{"code": "PUSH_TOO_MANY_EXPERIENCE_IDS", "message": "nope"}]},
            )
        )

        with pytest.raises(PushGatewayError):
            await gateway.send(_messages(1))

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_ticket_list_raises(self, gateway):
        respx.post(PUSH_URL).mock(return_value=httpx.Response(200, json={"ok": True}))

        with pytest.raises(PushGatewayError):
            await gateway.send(_messages(1))

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_raises(self, gateway):
        respx.post(PUSH_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(PushGatewayError, match="timed out"):
            await gateway.send(_messages(1))

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_error_raises(self, gateway):
        respx.post(PUSH_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(PushGatewayError):
            await gateway.send(_messages(1))

    @pytest.mark.asyncio
    async def test_empty_batch_sends_nothing(self, gateway):
        assert await gateway.send([]) == []

    @pytest.mark.asyncio
    async def test_oversized_batch_rejected(self, gateway):
        with pytest.raises(ValueError):
            await gateway.send(_messages(101))
