import enum


class Direction(enum.IntEnum):
    BACKWARD = -1
    FORWARD = 1


class SortMode(str, enum.Enum):
    LATEST = "latest"
    BOOKMARKS = "bookmarks"
    RANDOM = "random"


class NavigationResult(str, enum.Enum):
    MOVED = "moved"
    IGNORED = "ignored"
    BLOCKED = "blocked"


class LoginPrompt(str, enum.Enum):
    # guest ran out of forward swipes
    LIMIT = "limit"
    # guest tried to like or bookmark
    ACTION = "action"


class EngagementKind(str, enum.Enum):
    LIKE = "like"
    BOOKMARK = "bookmark"
