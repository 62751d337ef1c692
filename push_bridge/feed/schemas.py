"""Schema for entries returned by the ads feed."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Ad(BaseModel):
    """
    A single ad as published by the feed.

    The feed is the source of truth; entries are read-only here and
    fetched fresh every cycle. Numeric ids are coerced to strings so the
    ledger stores one canonical form. ``isActive`` is checked on the raw
    entry before validation and is not part of the model.
    """

    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        extra="ignore",
        frozen=True,
    )

    id: str = Field(..., min_length=1)
    title: str | None = None
    body: str | None = None
    message: str | None = None
    image: Any = None

    @classmethod
    def from_feed(cls, raw: dict[str, Any]) -> "Ad":
        """Validate one raw feed object."""
        return cls.model_validate(raw)
