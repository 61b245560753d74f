from ninebooks.client.api import FeedApiClient, FeedApiError, FeedPage
from ninebooks.client.controller import FeedController
from ninebooks.client.engagement import EngagementState, EngagementTracker
from ninebooks.client.gestures import TouchGate, WheelGate, key_direction
from ninebooks.client.guest import GuestQuota, MemorySessionStore, SessionStore
from ninebooks.client.hydration import MetadataHydrator
from ninebooks.client.state import Direction, EngagementKind, LoginPrompt, NavigationResult, SortMode

__all__ = [
    "FeedApiClient",
    "FeedApiError",
    "FeedPage",
    "FeedController",
    "EngagementState",
    "EngagementTracker",
    "TouchGate",
    "WheelGate",
    "key_direction",
    "GuestQuota",
    "MemorySessionStore",
    "SessionStore",
    "MetadataHydrator",
    "Direction",
    "EngagementKind",
    "LoginPrompt",
    "NavigationResult",
    "SortMode",
]
