"""Expo push token format validation."""

import re

_BRACKETED_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")
_DEVICE_ID_RE = re.compile(
    r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$",
    re.IGNORECASE,
)


def is_expo_push_token(token: object) -> bool:
    """
    Check whether a value is a well-formed Expo push token.

    Accepts ``ExponentPushToken[...]`` / ``ExpoPushToken[...]`` with a
    non-empty inner part, or a bare 8-4-4-4-12 device identifier.
    """
    if not isinstance(token, str):
        return False

    for prefix in _BRACKETED_PREFIXES:
        if token.startswith(prefix) and token.endswith("]"):
            return len(token) > len(prefix) + 1

    return _DEVICE_ID_RE.match(token) is not None


def partition_tokens(tokens: list[str]) -> tuple[list[str], list[str]]:
    """Split tokens into (valid, invalid), preserving order and dropping repeats."""
    valid: list[str] = []
    invalid: list[str] = []
    seen: set[str] = set()
    for token in tokens:
        if token in seen:
            continue
        seen.add(token)
        (valid if is_expo_push_token(token) else invalid).append(token)
    return valid, invalid
