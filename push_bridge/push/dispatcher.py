"""Push dispatcher fanning one ad out to every registered device.

Builds one message per valid token, splits the messages into gateway
sized batches and sends the batches one after another. A failed batch
is logged and counted but never stops the remaining batches, and never
makes the dispatch as a whole fail: partial delivery is acceptable.

Pattern: Orchestrator, delegates delivery to a stateless PushGateway.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from push_bridge.config.settings import Settings, get_settings
from push_bridge.feed.schemas import Ad
from push_bridge.observability.metrics import get_metrics
from push_bridge.push.gateway import ExpoPushGateway, PushGateway
from push_bridge.push.schemas import PushMessage, PushTicket
from push_bridge.push.tokens import partition_tokens

logger = logging.getLogger(__name__)

NOTIFICATION_AD_TYPE = "notification_ad"
DEFAULT_BODY = "You have a new notification"

_TITLE_PREFIX_RE = re.compile(r"^notification:?\s*", re.IGNORECASE)


def normalize_title(title: str) -> str:
    """Strip a leading ``Notification`` / ``Notification:`` prefix.

    Falls back to the original title when nothing is left.
    """
    stripped = _TITLE_PREFIX_RE.sub("", title, count=1).strip()
    return stripped or title


def notification_body(ad: Ad, default: str = DEFAULT_BODY) -> str:
    return ad.body or ad.message or default


@dataclass
class DispatchOutcome:
    """Result of dispatching one ad.

    Attributes:
        ad_id: Dispatched ad.
        title: Display title sent to devices.
        valid_tokens: Tokens a message was built for.
        invalid_tokens: Tokens excluded for failing format validation.
        batches_sent: Batches accepted by the gateway.
        batches_failed: Batches whose send raised.
        tickets: Per-message tickets from accepted batches.
        errors: One message per failed batch.
        unregistered_tokens: Tokens the gateway reported as no longer registered.
    """

    ad_id: str
    title: str
    valid_tokens: int = 0
    invalid_tokens: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    tickets: list[PushTicket] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    unregistered_tokens: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        """No valid tokens, so nothing was sent."""
        return self.valid_tokens == 0

    @property
    def tickets_ok(self) -> int:
        return sum(1 for t in self.tickets if t.is_ok)

    @property
    def tickets_failed(self) -> int:
        return sum(1 for t in self.tickets if not t.is_ok)


class Dispatcher:
    """Sends one ad as a push notification to a list of device tokens.

    Usage:
        dispatcher = Dispatcher()
        outcome = await dispatcher.dispatch(ad, tokens)
    """

    def __init__(
        self,
        gateway: PushGateway | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._gateway = gateway or ExpoPushGateway(settings=settings)
        self._sound = settings.push_sound
        self._priority = settings.push_priority
        self._badge = settings.push_badge
        self._default_body = settings.default_notification_body
        self._metrics = get_metrics()

    @property
    def gateway(self) -> PushGateway:
        return self._gateway

    def build_messages(self, ad: Ad, tokens: Sequence[str]) -> list[PushMessage]:
        """Build one message per token, all sharing the ad's content."""
        title = normalize_title(ad.title or "")
        body = notification_body(ad, self._default_body)
        data = {
            "adId": ad.id,
            "type": NOTIFICATION_AD_TYPE,
            "imageUrl": ad.image,
        }
        return [
            PushMessage(
                to=token,
                title=title,
                body=body,
                data=dict(data),
                sound=self._sound,
                priority=self._priority,
                badge=self._badge,
            )
            for token in tokens
        ]

    async def dispatch(self, ad: Ad, tokens: Sequence[str]) -> DispatchOutcome:
        """Send ``ad`` to every well-formed token.

        Args:
            ad: Notification ad to deliver.
            tokens: Registered device tokens.

        Returns:
            DispatchOutcome describing what was sent.
        """
        valid, invalid = partition_tokens(list(tokens))
        outcome = DispatchOutcome(
            ad_id=ad.id,
            title=normalize_title(ad.title or ""),
            valid_tokens=len(valid),
            invalid_tokens=len(invalid),
        )

        if invalid:
            logger.debug(
                "Excluded %d malformed token(s) from ad %s", len(invalid), ad.id,
            )

        if not valid:
            logger.info("No valid push tokens for ad %s, nothing to send", ad.id)
            return outcome

        messages = self.build_messages(ad, valid)

        for batch in self._gateway.chunk(messages):
            try:
                tickets = await self._gateway.send(batch)
            except Exception as e:
                outcome.batches_failed += 1
                outcome.errors.append(str(e))
                self._metrics.record_batch(ok=False)
                logger.error(
                    "Failed to send batch of %d for ad %s: %s",
                    len(batch), ad.id, e,
                )
                continue

            outcome.batches_sent += 1
            outcome.tickets.extend(tickets)
            self._metrics.record_batch(ok=True)
            logger.info("Sent %d push notification(s) for ad %s", len(batch), ad.id)

        outcome.unregistered_tokens = [
            t.token for t in outcome.tickets
            if t.is_device_not_registered and t.token
        ]
        self._metrics.record_tickets(outcome.tickets_ok, outcome.tickets_failed)
        self._record_delivery(outcome)
        return outcome

    def _record_delivery(self, outcome: DispatchOutcome) -> None:
        """Log delivery results."""
        if outcome.batches_failed and not outcome.batches_sent:
            logger.error(
                "Ad %s failed ALL %d batch(es)", outcome.ad_id, outcome.batches_failed,
            )
        elif outcome.batches_failed or outcome.tickets_failed:
            logger.warning(
                "Ad %s partial delivery: batches ok=%d failed=%d, tickets ok=%d failed=%d",
                outcome.ad_id,
                outcome.batches_sent,
                outcome.batches_failed,
                outcome.tickets_ok,
                outcome.tickets_failed,
            )
        else:
            logger.debug(
                "Ad %s delivered to %d device(s)", outcome.ad_id, outcome.tickets_ok,
            )
