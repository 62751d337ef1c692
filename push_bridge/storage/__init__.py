"""File-backed durable state.

Components:
- JsonListStore: Atomic whole-file JSON array store with a single-writer lock
- ProcessedLedger: Bounded log of dispatched ad ids
- TokenRegistry: Validated set of device push tokens
"""

from push_bridge.storage.base import JsonListStore
from push_bridge.storage.ledger import ProcessedLedger, trim_to_retention
from push_bridge.storage.tokens import TokenRegistry

__all__ = ["JsonListStore", "ProcessedLedger", "TokenRegistry", "trim_to_retention"]
