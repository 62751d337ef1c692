"""Ads feed access and notification ad selection.

Components:
- Ad: Validated feed entry
- FeedClient / FeedResult: HTTP fetch of the active ads collection
- NotificationSelector: Pure qualification and novelty filter
"""

from push_bridge.feed.client import FeedClient, FeedResult
from push_bridge.feed.schemas import Ad
from push_bridge.feed.selector import NotificationSelector

__all__ = ["Ad", "FeedClient", "FeedResult", "NotificationSelector"]
