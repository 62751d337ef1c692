"""Services that orchestrate the polling pipeline."""

from push_bridge.services.poller import CycleReport, Poller, PollerState

__all__ = ["CycleReport", "Poller", "PollerState"]
