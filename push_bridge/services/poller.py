"""
Poller service - drives the fetch, select, dispatch, record cycle.

Runs one cycle shortly after startup and then on a fixed interval.
Ticks are scheduled on the interval regardless of how long a cycle
takes; a tick that fires while a cycle is still running is dropped,
never queued.

Cycle:
1. Fetch active ads from the feed
2. Select new notification ads against the processed ledger
3. Dispatch each selected ad to the registered tokens
4. Record the dispatched ids in the ledger (one write per cycle)
5. Optionally prune tokens the gateway reported as unregistered
"""

import asyncio
import enum
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from push_bridge.config.settings import Settings, get_settings
from push_bridge.feed.client import FeedClient
from push_bridge.feed.selector import NotificationSelector
from push_bridge.observability.logging import bind_context, unbind_context
from push_bridge.observability.metrics import get_metrics
from push_bridge.push.dispatcher import DispatchOutcome, Dispatcher
from push_bridge.storage.ledger import ProcessedLedger
from push_bridge.storage.tokens import TokenRegistry

logger = structlog.get_logger(__name__)


class PollerState(enum.Enum):
    """Poller states."""
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class CycleReport:
    """Aggregated outcome of one poll cycle.

    Attributes:
        cycle_id: Short identifier bound to the cycle's log lines.
        started_at: When the cycle began.
        fetched: Active ads returned by the feed.
        qualifying: Ads whose title marks them as notifications.
        selected: Qualifying ads not yet in the ledger.
        dispatched: Ad ids recorded as processed this cycle.
        failed: Ad ids whose dispatch raised (retried next cycle).
        outcomes: Per-ad dispatch outcomes.
        pruned_tokens: Tokens removed from the registry.
        feed_error: Feed failure description, if the fetch failed.
        error: Unexpected error that aborted the cycle.
        duration_seconds: Wall time of the cycle.
    """

    cycle_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    fetched: int = 0
    qualifying: int = 0
    selected: int = 0
    dispatched: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    outcomes: list[DispatchOutcome] = field(default_factory=list)
    pruned_tokens: list[str] = field(default_factory=list)
    feed_error: str | None = None
    error: str | None = None
    duration_seconds: float = 0.0

    @property
    def status(self) -> str:
        return "failed" if self.error else "completed"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "cycle_id": self.cycle_id,
            "started_at": self.started_at.isoformat(),
            "status": self.status,
            "fetched": self.fetched,
            "qualifying": self.qualifying,
            "selected": self.selected,
            "dispatched": list(self.dispatched),
            "failed": list(self.failed),
            "pruned_tokens": len(self.pruned_tokens),
            "feed_error": self.feed_error,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class Poller:
    """
    Small state machine scheduling poll cycles.

    States: IDLE -> RUNNING -> IDLE. ``tick()`` while RUNNING is a no-op.

    Usage:
        poller = Poller()
        await poller.start()  # Runs until stop() is called
    """

    def __init__(
        self,
        feed: FeedClient | None = None,
        selector: NotificationSelector | None = None,
        dispatcher: Dispatcher | None = None,
        ledger: ProcessedLedger | None = None,
        registry: TokenRegistry | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the poller.

        Args:
            feed: Ads feed client (or create from config)
            selector: Notification selector (or create from config)
            dispatcher: Push dispatcher (or create from config)
            ledger: Processed-ad ledger (or create from config)
            registry: Token registry (or create from config)
            settings: Settings override
        """
        settings = settings or get_settings()

        self._feed = feed or FeedClient(settings=settings)
        self._selector = selector or NotificationSelector(settings.notification_keyword)
        self._dispatcher = dispatcher or Dispatcher(settings=settings)
        self._ledger = ledger or ProcessedLedger(settings=settings)
        self._registry = registry or TokenRegistry(settings=settings)

        self._interval = settings.poll_interval_seconds
        self._startup_delay = settings.startup_delay_seconds
        self._prune_unregistered = settings.prune_unregistered_tokens

        self._state = PollerState.IDLE
        self._running = False
        self._scheduler: asyncio.Task | None = None
        self._cycle_tasks: set[asyncio.Task] = set()
        self._last_report: CycleReport | None = None
        self._metrics = get_metrics()

        logger.info(
            "Poller initialized",
            feed_url=self._feed.url,
            poll_interval=self._interval,
            startup_delay=self._startup_delay,
        )

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is active."""
        return self._running

    @property
    def last_report(self) -> CycleReport | None:
        return self._last_report

    async def tick(self) -> CycleReport | None:
        """
        Run one cycle unless one is already in progress.

        Returns:
            The cycle report, or None if the tick was dropped.
        """
        if self._state is PollerState.RUNNING:
            logger.warning("Previous cycle still running, skipping tick")
            self._metrics.record_cycle("skipped")
            return None

        self._state = PollerState.RUNNING
        try:
            report = await self.run_cycle()
        finally:
            self._state = PollerState.IDLE

        self._last_report = report
        return report

    async def run_cycle(self) -> CycleReport:
        """
        Run one full cycle. Never raises.

        Returns:
            CycleReport aggregating every stage outcome
        """
        report = CycleReport()
        start_time = time.monotonic()
        bind_context(cycle_id=report.cycle_id)

        logger.info("Checking for notification ads")
        try:
            await self._run_stages(report)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            report.error = f"{type(e).__name__}: {e}"
            logger.exception("Poll cycle failed", error=str(e))
        finally:
            report.duration_seconds = time.monotonic() - start_time
            unbind_context("cycle_id")

        self._metrics.record_cycle(report.status, report.duration_seconds)
        logger.info("Poll cycle finished", **report.to_dict())
        return report

    async def _run_stages(self, report: CycleReport) -> None:
        feed_result = await self._feed.fetch_result()
        report.fetched = len(feed_result.ads)
        report.feed_error = feed_result.error

        if not feed_result.ads:
            logger.info("No ads returned from feed")
            return

        report.qualifying = len(self._selector.qualifying(feed_result.ads))
        if not report.qualifying:
            logger.info("No notification ads found")
            return

        processed = await self._ledger.processed_ids()
        new_ads = self._selector.select(feed_result.ads, processed)
        report.selected = len(new_ads)
        self._metrics.record_ads("selected", len(new_ads))

        if not new_ads:
            logger.info("No new notification ads to process")
            return

        tokens = await self._registry.tokens()
        self._metrics.set_registered_tokens(len(tokens))
        logger.info(
            "Processing new notification ads",
            ads=len(new_ads),
            tokens=len(tokens),
        )

        for ad in new_ads:
            try:
                outcome = await self._dispatcher.dispatch(ad, tokens)
            except Exception as e:
                report.failed.append(ad.id)
                logger.error("Error processing ad", ad_id=ad.id, error=str(e))
                continue

            report.outcomes.append(outcome)
            report.dispatched.append(ad.id)
            logger.info(
                "Sent push for ad",
                ad_id=ad.id,
                title=outcome.title,
                devices=outcome.valid_tokens,
                batches_failed=outcome.batches_failed,
            )

        self._metrics.record_ads("dispatched", len(report.dispatched))
        self._metrics.record_ads("failed", len(report.failed))

        if report.dispatched:
            ledger_ids = await self._ledger.record(report.dispatched)
            self._metrics.set_ledger_size(len(ledger_ids))

        if self._prune_unregistered:
            await self._prune(report)

    async def _prune(self, report: CycleReport) -> None:
        """Remove tokens the gateway reported as no longer registered."""
        stale = [
            token
            for outcome in report.outcomes
            for token in outcome.unregistered_tokens
        ]
        if not stale:
            return

        report.pruned_tokens = await self._registry.remove_many(stale)
        if report.pruned_tokens:
            self._metrics.tokens_pruned.inc(len(report.pruned_tokens))
            logger.info("Pruned unregistered push tokens", count=len(report.pruned_tokens))

    async def start(self) -> None:
        """
        Start the scheduler.

        Runs until stop() is called.
        """
        self._running = True
        logger.info("Starting poller")

        try:
            await asyncio.sleep(self._startup_delay)
            logger.info("Running initial notification check")
            while self._running:
                self._spawn_tick()
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            logger.info("Poller cancelled")
        finally:
            await self._cleanup()

    def start_background(self) -> asyncio.Task:
        """Run the scheduler as a background task."""
        if self._scheduler is None or self._scheduler.done():
            self._scheduler = asyncio.create_task(self.start(), name="poller")
        return self._scheduler

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        logger.info("Stopping poller")
        self._running = False

        if self._scheduler is not None and not self._scheduler.done():
            self._scheduler.cancel()
            await asyncio.gather(self._scheduler, return_exceptions=True)
        self._scheduler = None

        await self._cleanup()

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self.tick(), name="poll_cycle")
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    async def _cleanup(self) -> None:
        """Let in-flight cycles finish so their ids reach the ledger."""
        self._running = False
        tasks = list(self._cycle_tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._cycle_tasks.clear()

    async def health_check(self) -> dict[str, Any]:
        """
        Check health of the poller.

        Returns:
            Dictionary with health status
        """
        return {
            "running": self._running,
            "state": self._state.value,
            "last_cycle": self._last_report.to_dict() if self._last_report else None,
        }
