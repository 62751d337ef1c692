"""
Health check endpoint.
"""

import structlog
from fastapi import APIRouter, Depends

from push_bridge.api.dependencies import (
    get_poller,
    get_processed_ledger,
    get_token_registry,
)
from push_bridge.api.models import HealthResponse
from push_bridge.config.settings import get_settings
from push_bridge.services.poller import Poller
from push_bridge.storage.ledger import ProcessedLedger
from push_bridge.storage.tokens import TokenRegistry

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Report registry and ledger sizes plus the polling configuration.",
)
async def health_check(
    registry: TokenRegistry = Depends(get_token_registry),
    ledger: ProcessedLedger = Depends(get_processed_ledger),
    poller: Poller | None = Depends(get_poller),
) -> HealthResponse:
    settings = get_settings()

    return HealthResponse(
        status="online",
        registered_devices=await registry.count(),
        processed_ads=await ledger.count(),
        feed_url=settings.ads_api_url,
        polling_interval=settings.polling_interval_label,
        poller_state=poller.state.value if poller else None,
    )
