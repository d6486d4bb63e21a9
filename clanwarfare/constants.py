from __future__ import annotations
from enum import Enum

# Timestamps in the snapshot compare correctly as plain strings
MACHINE_READABLE = "%Y-%m-%dT%H:%M:%SZ"
DATE_FORMAT = "%Y-%m-%d"

BLANK = "-"
NOT_PLAYED = "-1"
UNRANKED = "N/A"

# Events that never qualify for the site (Iron Banner)
EXCLUDED_EVENT_IDS = frozenset({130})
STATS_GAMES_THRESHOLD = 5

BUNGIE_BASE_URL = "https://www.bungie.net"
BUNGIE_AVATAR_PATH = "/img/profile/avatars/"
BUNGIE_DEFAULT_AVATAR_ICON = "default_avatar.gif"
BUNGIE_DISABLED_STATUS_CODES = (5,)
PLATFORM_DEFAULT = 4
PLATFORM_PERCENTAGE = 10

PGCR_BASE_URL = "https://destinytracker.com/d2/pgcr"


class MedalType(str, Enum):
    CLAN = "clan"
    MEMBER = "member"


class Tense(str, Enum):
    PAST = "past"
    CURRENT = "current"
    FUTURE = "future"


class MatchResult(str, Enum):
    WIN = "win"
    LOSS = "loss"
    UNKNOWN = ""


# key -> (display name, clan size)
DIVISIONS: tuple[tuple[str, str, str], ...] = (
    ("large", "Large", "76-100"),
    ("medium", "Medium", "31-75"),
    ("small", "Small", "2-30"),
)
