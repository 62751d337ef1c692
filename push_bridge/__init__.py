"""Bridge between an ads feed and the Expo push notification gateway."""

__version__ = "0.1.0"
