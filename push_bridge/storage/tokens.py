"""Registry of device push tokens."""

import logging
from pathlib import Path

from push_bridge.config.settings import Settings, get_settings
from push_bridge.errors import InvalidPushTokenError
from push_bridge.push.tokens import is_expo_push_token
from push_bridge.storage.base import JsonListStore

logger = logging.getLogger(__name__)


class TokenRegistry(JsonListStore):
    """
    Durable set of Expo push tokens.

    Tokens are validated at registration; a malformed token is rejected
    before anything is written.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        super().__init__(path or settings.push_tokens_path, name="push tokens")

    @staticmethod
    def is_valid(token: object) -> bool:
        return is_expo_push_token(token)

    async def tokens(self) -> list[str]:
        return await self.all()

    async def register(self, token: object) -> bool:
        """
        Add a token to the registry.

        Returns:
            True if the token was new, False if already registered.

        Raises:
            InvalidPushTokenError: If the token is malformed.
        """
        if not self.is_valid(token):
            raise InvalidPushTokenError(token)

        added = await self.add(token)
        if added:
            logger.info("Registered new push token: %s", token)
        return added

    async def unregister(self, token: str) -> bool:
        """Remove a token. Returns True if it was registered."""
        removed = await self.remove(token)
        if removed:
            logger.info("Unregistered push token: %s", token)
        return removed
