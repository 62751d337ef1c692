"""
Push token registration endpoints.
"""

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from push_bridge.api.dependencies import get_token_registry
from push_bridge.api.models import PushTokenRequest, PushTokenResponse
from push_bridge.errors import InvalidPushTokenError
from push_bridge.observability.metrics import get_metrics
from push_bridge.storage.tokens import TokenRegistry

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post(
    "/register-push-token",
    response_model=PushTokenResponse,
    summary="Register a device push token",
    responses={400: {"model": PushTokenResponse, "description": "Invalid push token"}},
)
async def register_push_token(
    request: PushTokenRequest | None = None,
    registry: TokenRegistry = Depends(get_token_registry),
):
    token = request.token if request else None
    try:
        await registry.register(token)
    except InvalidPushTokenError:
        logger.warning("Rejected invalid push token", token=repr(token)[:100])
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Invalid push token"},
        )

    get_metrics().set_registered_tokens(await registry.count())
    return PushTokenResponse(
        success=True,
        message="Push token registered successfully",
    )


@router.post(
    "/unregister-push-token",
    response_model=PushTokenResponse,
    summary="Unregister a device push token",
)
async def unregister_push_token(
    request: PushTokenRequest | None = None,
    registry: TokenRegistry = Depends(get_token_registry),
) -> PushTokenResponse:
    token = request.token if request else None
    if isinstance(token, str) and token:
        await registry.unregister(token)
        get_metrics().set_registered_tokens(await registry.count())

    return PushTokenResponse(success=True, message="Push token unregistered")
