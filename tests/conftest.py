"""Pytest fixtures for push bridge tests."""

from collections.abc import Sequence
from pathlib import Path

import pytest

from push_bridge.config.settings import Settings, get_settings
from push_bridge.feed.schemas import Ad
from push_bridge.push.gateway import PushGateway
from push_bridge.push.schemas import PushMessage, PushTicket

FEED_URL = "https://ads.example.com/api/ads"
PUSH_URL = "https://push.example.com/--/api/v2/push/send"


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings configured for testing, with state files under tmp_path."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        ads_api_url=FEED_URL,
        expo_push_url=PUSH_URL,
        data_dir=tmp_path,
        poller_enabled=False,
        startup_delay_seconds=0.0,
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_token(n: int) -> str:
    """Well-formed Expo token with a distinct inner part."""
    return f"ExponentPushToken[device{n:05d}]"


@pytest.fixture
def valid_tokens() -> list[str]:
    return [make_token(i) for i in range(3)]


@pytest.fixture
def notification_ad() -> Ad:
    return Ad(
        id="a1",
        title="Notification: New Item",
        body="Fresh stock just landed",
        image="https://cdn.example.com/a1.png",
    )


@pytest.fixture
def feed_payload() -> list[dict]:
    """Raw feed response mixing notification, regular and inactive ads."""
    return [
        {"id": "a1", "title": "Notification: New Item", "isActive": True},
        {"id": "a2", "title": "Summer banner", "isActive": True},
        {"id": "a3", "title": "NOTIFICATION sale", "message": "50% off"},
        {"id": "a4", "title": "Notification: expired", "isActive": False},
    ]


class FakeGateway(PushGateway):
    """In-memory gateway recording every batch it is asked to send."""

    def __init__(
        self,
        batch_size: int = 100,
        fail_batches: Sequence[int] = (),
        ticket_errors: dict[str, str] | None = None,
    ):
        super().__init__(batch_size)
        self.batches: list[list[PushMessage]] = []
        self._fail_batches = set(fail_batches)
        self._ticket_errors = ticket_errors or {}

    async def send(self, batch: Sequence[PushMessage]) -> list[PushTicket]:
        index = len(self.batches)
        self.batches.append(list(batch))
        if index in self._fail_batches:
            raise RuntimeError(f"batch {index} rejected")

        tickets = []
        for message in batch:
            code = self._ticket_errors.get(message.to)
            if code:
                tickets.append(
                    PushTicket(
                        status="error",
                        token=message.to,
                        message="failed",
                        details={"error": code},
                    )
                )
            else:
                tickets.append(PushTicket(status="ok", token=message.to, id=f"receipt-{message.to}"))
        return tickets

    @property
    def messages(self) -> list[PushMessage]:
        return [m for batch in self.batches for m in batch]


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def gateway_factory():
    """Build a FakeGateway with custom batch size or failures."""
    return FakeGateway


@pytest.fixture
def token_factory():
    return make_token
