"""
Request and response models for the registration API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PushTokenRequest(BaseModel):
    """Request body for token registration and removal."""

    token: Any = Field(
        default=None,
        description="Expo push token, e.g. ExponentPushToken[xxxxxxxx]. Any other value is rejected with 400.",
    )


class PushTokenResponse(BaseModel):
    """Response for token registration and removal."""

    success: bool
    message: str


class HealthResponse(BaseModel):
    """Response model for health check."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(..., description="Service status")
    registered_devices: int = Field(
        ...,
        alias="registeredDevices",
        description="Number of registered push tokens",
    )
    processed_ads: int = Field(
        ...,
        alias="processedAds",
        description="Number of ad ids in the processed ledger",
    )
    feed_url: str = Field(..., alias="feedUrl", description="Polled ads feed")
    polling_interval: str = Field(
        ...,
        alias="pollingInterval",
        description="Polling schedule",
    )
    poller_state: str | None = Field(
        default=None,
        alias="pollerState",
        description="idle or running; null when the poller is disabled",
    )
