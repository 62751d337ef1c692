"""Exception hierarchy for the push bridge."""


class PushBridgeError(Exception):
    """Base exception for push bridge errors."""


class FeedError(PushBridgeError):
    """Raised when the ads feed cannot be fetched or parsed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PushGatewayError(PushBridgeError):
    """Raised when a batch could not be delivered to the push gateway."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class InvalidPushTokenError(PushBridgeError, ValueError):
    """Raised when a token does not match the gateway's token format."""

    def __init__(self, token: object):
        super().__init__(f"Invalid push token: {token!r}")
        self.token = token


class StoreError(PushBridgeError):
    """Raised when a store file cannot be written."""

    pass
