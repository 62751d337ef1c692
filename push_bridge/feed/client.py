"""
HTTP client for the ads feed.

Fetches the full ads collection once per poll cycle, appending a
cache-busting timestamp so intermediaries never serve a stale copy.
Failures never escape ``fetch()``: they are logged, counted, and
surfaced on the returned ``FeedResult`` as an empty ad list.
"""

import time
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from push_bridge.config.settings import Settings, get_settings
from push_bridge.errors import FeedError
from push_bridge.feed.schemas import Ad
from push_bridge.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


@dataclass
class FeedResult:
    """Outcome of one feed fetch."""

    ads: list[Ad] = field(default_factory=list)
    total: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FeedClient:
    """
    Fetches active ads from the external feed.

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling)
    since the feed is polled once every couple of minutes.

    Usage:
        client = FeedClient()
        ads = await client.fetch()
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self._url = url or settings.ads_api_url
        self._timeout = timeout or settings.feed_timeout_seconds
        self._user_agent = user_agent or settings.feed_user_agent
        self._metrics = get_metrics()

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Cache-Control": "no-cache",
            "User-Agent": self._user_agent,
        }

    async def fetch(self) -> list[Ad]:
        """Return the active ads, or an empty list if the feed is unavailable."""
        result = await self.fetch_result()
        return result.ads

    async def fetch_result(self) -> FeedResult:
        """
        Fetch the feed and report the outcome.

        Returns:
            FeedResult with active ads in feed order; ``error`` is set
            and ``ads`` is empty when the fetch failed.
        """
        try:
            payload = await self._get_json()
        except FeedError as e:
            logger.warning(
                "Feed fetch failed",
                url=self._url,
                error=str(e),
                status_code=e.status_code,
            )
            self._metrics.record_feed_fetch("error")
            return FeedResult(error=str(e))

        ads = self._parse(payload)
        self._metrics.record_feed_fetch("ok", ad_count=len(ads))
        logger.info(
            "Feed fetched",
            total=len(payload),
            active=len(ads),
        )
        return FeedResult(ads=ads, total=len(payload))

    async def _get_json(self) -> list[Any]:
        """Perform the GET and return the decoded JSON array."""
        params = {"t": str(int(time.time() * 1000))}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    self._url,
                    params=params,
                    headers=self._headers(),
                )
        except httpx.TimeoutException as e:
            raise FeedError(f"Feed request timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise FeedError(f"Feed request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise FeedError(
                f"Feed returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FeedError("Feed response is not valid JSON") from e

        if not isinstance(payload, list):
            raise FeedError(
                f"Feed response is not an array (got {type(payload).__name__})"
            )
        return payload

    def _parse(self, payload: list[Any]) -> list[Ad]:
        """Keep entries not explicitly inactive, preserving feed order."""
        ads: list[Ad] = []
        for raw in payload:
            if not isinstance(raw, dict):
                logger.debug("Skipping non-object feed entry", entry=repr(raw)[:100])
                continue
            # Only an explicit boolean false deactivates an entry
            if raw.get("isActive") is False:
                continue
            try:
                ads.append(Ad.from_feed(raw))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed feed entry",
                    entry_id=raw.get("id"),
                    errors=e.error_count(),
                )
        return ads
