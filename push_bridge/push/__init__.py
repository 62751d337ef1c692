"""Push notification delivery.

Components:
- is_expo_push_token: Gateway token format predicate
- PushMessage / PushTicket: Outbound message and per-message acknowledgment
- PushGateway / ExpoPushGateway: Batch delivery to the Expo push API
- Dispatcher / DispatchOutcome: Per-ad fan-out across batches
"""

from push_bridge.push.dispatcher import (
    DispatchOutcome,
    Dispatcher,
    normalize_title,
    notification_body,
)
from push_bridge.push.gateway import MAX_BATCH_SIZE, ExpoPushGateway, PushGateway
from push_bridge.push.schemas import PushMessage, PushTicket
from push_bridge.push.tokens import is_expo_push_token

__all__ = [
    "DispatchOutcome",
    "Dispatcher",
    "ExpoPushGateway",
    "MAX_BATCH_SIZE",
    "PushGateway",
    "PushMessage",
    "PushTicket",
    "is_expo_push_token",
    "normalize_title",
    "notification_body",
]
