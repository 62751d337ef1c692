"""
Dependency injection for FastAPI endpoints.
"""

from push_bridge.config.settings import get_settings
from push_bridge.services.poller import Poller
from push_bridge.storage.ledger import ProcessedLedger
from push_bridge.storage.tokens import TokenRegistry

# Global instances (initialized on first request). The poller shares the
# same store objects so their locks serialize HTTP and cycle writes.
_token_registry: TokenRegistry | None = None
_processed_ledger: ProcessedLedger | None = None
_poller: Poller | None = None


def get_token_registry() -> TokenRegistry:
    """Get the token registry."""
    global _token_registry

    if _token_registry is None:
        _token_registry = TokenRegistry(settings=get_settings())
    return _token_registry


def get_processed_ledger() -> ProcessedLedger:
    """Get the processed-ad ledger."""
    global _processed_ledger

    if _processed_ledger is None:
        _processed_ledger = ProcessedLedger(settings=get_settings())
    return _processed_ledger


def get_poller() -> Poller | None:
    """Get the poller if it has been created."""
    return _poller


def create_poller() -> Poller:
    """Create the poller bound to the shared stores."""
    global _poller

    if _poller is None:
        _poller = Poller(
            ledger=get_processed_ledger(),
            registry=get_token_registry(),
            settings=get_settings(),
        )
    return _poller


async def cleanup_dependencies() -> None:
    """Stop the poller and drop cached instances."""
    global _token_registry, _processed_ledger, _poller

    if _poller is not None:
        await _poller.stop()

    _poller = None
    _token_registry = None
    _processed_ledger = None
