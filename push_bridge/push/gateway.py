"""Push gateway implementations.

Provides an ABC for push gateways plus the Expo push service
implementation. Gateways send one batch per call and return one ticket
per message; a batch that cannot be delivered raises PushGatewayError.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any

import httpx

from push_bridge.config.settings import Settings, get_settings
from push_bridge.errors import PushGatewayError
from push_bridge.push.schemas import PushMessage, PushTicket

logger = logging.getLogger(__name__)

# Expo rejects requests with more than 100 messages
MAX_BATCH_SIZE = 100


class PushGateway(ABC):
    """Abstract base for push notification gateways."""

    def __init__(self, batch_size: int = MAX_BATCH_SIZE) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}"
            )
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def chunk(self, messages: Sequence[PushMessage]) -> Iterator[list[PushMessage]]:
        """Split messages into consecutive batches of at most ``batch_size``."""
        for start in range(0, len(messages), self._batch_size):
            yield list(messages[start : start + self._batch_size])

    @abstractmethod
    async def send(self, batch: Sequence[PushMessage]) -> list[PushTicket]:
        """Deliver one batch.

        Args:
            batch: Messages to send (at most ``batch_size``).

        Returns:
            One ticket per message, in batch order.

        Raises:
            PushGatewayError: If the batch as a whole was not accepted.
        """


class ExpoPushGateway(PushGateway):
    """Sends batches to the Expo push API as a JSON array POST.

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling)
    matching the project's HTTP pattern.
    """

    def __init__(
        self,
        url: str | None = None,
        access_token: str | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        super().__init__(batch_size or settings.push_batch_size)
        self._url = url or settings.expo_push_url
        self._access_token = access_token or settings.expo_access_token
        self._timeout = timeout or settings.push_timeout_seconds

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def send(self, batch: Sequence[PushMessage]) -> list[PushTicket]:
        if not batch:
            return []
        if len(batch) > self._batch_size:
            raise ValueError(
                f"Batch of {len(batch)} exceeds the limit of {self._batch_size}"
            )

        payload = [message.to_payload() for message in batch]
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers=self._headers(),
                )
        except httpx.TimeoutException as e:
            raise PushGatewayError(
                f"Push gateway timed out after {self._timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise PushGatewayError(
                f"Push gateway request failed: {type(e).__name__}: {e}"
            ) from e

        if not resp.is_success:
            raise PushGatewayError(
                f"Push gateway returned status {resp.status_code}",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        return self._parse_tickets(resp, batch)

    def _parse_tickets(
        self,
        resp: httpx.Response,
        batch: Sequence[PushMessage],
    ) -> list[PushTicket]:
        try:
            body: Any = resp.json()
        except ValueError as e:
            raise PushGatewayError(
                "Push gateway response is not valid JSON",
                status_code=resp.status_code,
                response_body=resp.text,
            ) from e

        if not isinstance(body, dict):
            raise PushGatewayError(
                "Push gateway response is not an object",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        errors = body.get("errors")
        if errors:
            raise PushGatewayError(
                f"Push gateway rejected the batch: {errors}",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        data = body.get("data")
        if not isinstance(data, list):
            raise PushGatewayError(
                "Push gateway response has no ticket list",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        if len(data) != len(batch):
            logger.warning(
                "Push gateway returned %d tickets for %d messages",
                len(data), len(batch),
            )

        tickets: list[PushTicket] = []
        for index, raw in enumerate(data):
            token = batch[index].to if index < len(batch) else None
            if isinstance(raw, dict):
                tickets.append(PushTicket.from_dict(raw, token=token))
            else:
                tickets.append(
                    PushTicket(status="error", token=token, message="Malformed ticket")
                )
        return tickets
