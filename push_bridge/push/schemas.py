"""Schema definitions for push messages and gateway tickets."""

from dataclasses import dataclass, field
from typing import Any, Literal

DEVICE_NOT_REGISTERED = "DeviceNotRegistered"

TicketStatus = Literal["ok", "error"]


@dataclass
class PushMessage:
    """One outbound notification for a single device token.

    Attributes:
        to: Expo push token of the target device.
        title: Display title (already normalized).
        body: Display body.
        data: Payload delivered to the app (adId, type, imageUrl).
        sound: Sound to play, or None for silent.
        priority: Delivery priority (default, normal, high).
        badge: App icon badge count, or None to leave unchanged.
    """

    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: str | None = "default"
    priority: str = "high"
    badge: int | None = 1

    def to_payload(self) -> dict[str, Any]:
        """Convert to the gateway's JSON message shape, omitting unset fields."""
        payload: dict[str, Any] = {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "priority": self.priority,
        }
        if self.sound is not None:
            payload["sound"] = self.sound
        if self.badge is not None:
            payload["badge"] = self.badge
        return payload


@dataclass
class PushTicket:
    """Gateway acknowledgment for one message of a batch.

    Attributes:
        status: ``ok`` or ``error``.
        token: Token the message was addressed to.
        id: Receipt id assigned by the gateway on success.
        message: Error description on failure.
        details: Error details (``details["error"]`` holds the error code).
    """

    status: TicketStatus
    token: str | None = None
    id: str | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def error_code(self) -> str | None:
        if self.is_ok:
            return None
        code = self.details.get("error")
        return code if isinstance(code, str) else None

    @property
    def is_device_not_registered(self) -> bool:
        return self.error_code == DEVICE_NOT_REGISTERED

    @classmethod
    def from_dict(cls, data: dict[str, Any], token: str | None = None) -> "PushTicket":
        """Create a PushTicket from one entry of the gateway ``data`` array.

        Args:
            data: Ticket object returned by the gateway.
            token: Token of the message at the same position in the batch.

        Returns:
            PushTicket instance. Unknown statuses are treated as errors.
        """
        status = "ok" if data.get("status") == "ok" else "error"
        details = data.get("details")
        return cls(
            status=status,
            token=token,
            id=data.get("id"),
            message=data.get("message"),
            details=details if isinstance(details, dict) else {},
        )
