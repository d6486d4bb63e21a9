from __future__ import annotations
from ..constants import PGCR_BASE_URL

ROOT_URL = "/"
CLAN_ROOT_URL = "/clans/"
EVENT_ROOT_URL = "/events/"
CURRENT_EVENT_ROOT_URL = "/current/"


def _join(root: str, *parts) -> str:
    tail = "/".join(str(p) for p in parts if p is not None and p != "")
    return f"{root}{tail}/" if tail else root


def clan_url(clan_id) -> str:
    return _join(CLAN_ROOT_URL, clan_id)


def profile_url(clan_id, member_id, event_id=None) -> str:
    """Member page, or the member's page inside a past event."""
    if event_id is not None:
        return event_url(event_id, clan_id, member_id)
    return _join(CLAN_ROOT_URL, clan_id, member_id)


def event_url(event_id, clan_id=None, member_id=None) -> str:
    return _join(EVENT_ROOT_URL, event_id, clan_id, member_id)


def current_event_url(clan_id=None, member_id=None) -> str:
    return _join(CURRENT_EVENT_ROOT_URL, clan_id, member_id)


def pgcr_url(pgcr_id) -> str:
    return f"{PGCR_BASE_URL}/{pgcr_id}"
