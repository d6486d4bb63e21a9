"""Declarative fetch graph: phases of independent sections, one upstream endpoint each."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

import structlog

from ..cache.gateway import CacheGateway
from ..config import Settings
from ..constants import MedalType
from ..errors import CacheMiss, RecordParseError
from ..mappers.entities import map_clans, map_members, map_modifiers
from ..mappers.events import map_events
from ..mappers.leaderboards import (
    map_clan_leaderboard, map_current_leaderboards, map_match_history, map_previous_clan_leaderboard,
)
from ..mappers.medals import parse_medals
from ..utils.http import UpstreamClient

log = structlog.get_logger()

LAST_UPDATED_ENDPOINT = "Component/GetLastUpdatedTimes"
BUNGIE_STATUS_PATH = "Destiny2/Milestones/"

TimesMap = Mapping[str, Mapping[str, Any]]


@dataclass(frozen=True)
class RunContext:
    updated_date: str
    settings: Settings
    cached_times: TimesMap = field(default_factory=dict)
    current_times: TimesMap = field(default_factory=dict)
    # Raw last-updated payload, cached only once the whole run has succeeded
    last_updated: Any = None


@dataclass(frozen=True)
class SectionResult:
    """What one section contributes: snapshot field updates plus run-context updates."""
    updates: Mapping[str, Any] = field(default_factory=dict)
    context: Mapping[str, Any] = field(default_factory=dict)


Mapper = Callable[[Any, RunContext], SectionResult]
Loader = Callable[["SectionIO", bool], Awaitable[Any]]


@dataclass(frozen=True)
class SectionIO:
    client: UpstreamClient
    gateway: CacheGateway


@dataclass(frozen=True)
class Section:
    name: str
    mapper: Mapper
    endpoint: Optional[str] = None
    depends_on: tuple[tuple[str, str], ...] = ()
    always_refresh: bool = False
    skip: Optional[str] = None
    loader: Optional[Loader] = None

    async def load(self, io: SectionIO, force_refresh: bool) -> Any:
        if self.loader is not None:
            return await self.loader(io, force_refresh)
        return await io.gateway.load_or_refresh(self.endpoint, force_refresh)


@dataclass(frozen=True)
class Phase:
    name: str
    sections: tuple[Section, ...]


def needs_refresh(section: Section, cached: TimesMap, current: TimesMap) -> bool:
    """
    A section is refetched when any endpoint it depends on changed upstream,
    or when nothing was recorded for the endpoint's group last time.
    """
    if section.always_refresh:
        return True
    for group, operation in section.depends_on:
        if group not in cached:
            return True
        if (cached.get(group) or {}).get(operation) != (current.get(group) or {}).get(operation):
            return True
    return False


# --------------------------------- Loaders ---------------------------------

async def _load_last_updated(io: SectionIO, force_refresh: bool) -> dict[str, Any]:
    # Live map is not cached here: a run that fails later must refetch next time
    try:
        cached = await io.gateway.read(LAST_UPDATED_ENDPOINT)
    except CacheMiss:
        cached = {}
    except ValueError as e:
        log.warning("last_updated_cache_unreadable", error=str(e))
        cached = {}
    current = await io.client.get_json(LAST_UPDATED_ENDPOINT)
    return {"cached": cached, "current": current}


async def _load_bungie_status(io: SectionIO, force_refresh: bool) -> Any:
    return await io.client.get_bungie_json(BUNGIE_STATUS_PATH)


# --------------------------------- Mappers ---------------------------------

def _endpoints(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    return payload.get("endpoints") or {}


def _last_updated(payload: Any, ctx: RunContext) -> SectionResult:
    current = payload.get("current")
    if not isinstance(current, dict) or not isinstance(current.get("endpoints"), dict):
        raise RecordParseError("last updated", "missing 'endpoints' map")
    return SectionResult(context={
        "cached_times": _endpoints(payload.get("cached")),
        "current_times": _endpoints(current),
        "last_updated": current,
    })


def _bungie_status(payload: Any, ctx: RunContext) -> SectionResult:
    if not isinstance(payload, dict) or not isinstance(payload.get("ErrorCode"), int):
        raise RecordParseError("bungie status", "missing ErrorCode")
    return SectionResult(updates={"bungie_status": payload["ErrorCode"]})


def _enrollment(payload: Any, ctx: RunContext) -> SectionResult:
    if not isinstance(payload, bool):
        raise RecordParseError("enrollment", f"expected a boolean, got {type(payload).__name__}")
    return SectionResult(updates={"enrollment_open": payload})


def _alert(payload: Any, ctx: RunContext) -> SectionResult:
    if payload is not None and not isinstance(payload, str):
        raise RecordParseError("alert", f"expected a string, got {type(payload).__name__}")
    return SectionResult(updates={"alert": payload or None})


def _clans(payload: Any, ctx: RunContext) -> SectionResult:
    return SectionResult(updates={"clans": map_clans(payload)})


def _members(payload: Any, ctx: RunContext) -> SectionResult:
    return SectionResult(updates={"members": map_members(payload)})


def _events(payload: Any, ctx: RunContext) -> SectionResult:
    result = map_events(payload, ctx.updated_date)
    return SectionResult(updates={
        "events": result.events,
        "current_event_id": result.current_event_id,
        "current_event_stats_games_threshold": result.current_event_stats_games_threshold,
        "leaderboards": result.leaderboards,
    })


def _modifiers(payload: Any, ctx: RunContext) -> SectionResult:
    return SectionResult(updates={"modifiers": map_modifiers(payload)})


def _member_medals(payload: Any, ctx: RunContext) -> SectionResult:
    return SectionResult(updates={"medals": parse_medals(payload, MedalType.MEMBER).medals})


def _clan_medals(payload: Any, ctx: RunContext) -> SectionResult:
    return SectionResult(updates={"medals": parse_medals(payload, MedalType.CLAN).medals})


def _current_leaderboard(payload: Any, ctx: RunContext) -> SectionResult:
    return SectionResult(updates={"current_leaderboards": map_current_leaderboards(payload)})


def _current_clan_leaderboard(payload: Any, ctx: RunContext) -> SectionResult:
    board = map_clan_leaderboard(payload)
    return SectionResult(updates={
        "current_clan_leaderboard": board.totals,
        "last_checked": board.last_checked,
    })


def _match_history(payload: Any, ctx: RunContext) -> SectionResult:
    history = map_match_history(payload)
    return SectionResult(updates={
        "match_history": history.entries,
        "match_history_limit": history.limit,
    })


def _previous_clan_leaderboard(payload: Any, ctx: RunContext) -> SectionResult:
    event_id, board = map_previous_clan_leaderboard(payload)
    return SectionResult(updates={
        "previous_event_id": event_id,
        "previous_clan_leaderboard": board.totals,
        "last_checked": board.last_checked,
    })


# ---------------------------------- Graph ----------------------------------

def build_phases(settings: Settings) -> tuple[Phase, ...]:
    """The fetch graph for one run; skip policies are fixed here, not at run time."""
    return (
        Phase("last-updated", (
            Section("Last updated", _last_updated, endpoint=LAST_UPDATED_ENDPOINT, loader=_load_last_updated),
        )),
        Phase("bungie-status", (
            Section(
                "API status", _bungie_status,
                loader=_load_bungie_status,
                skip=None if settings.check_bungie_status else "Bungie API status check disabled",
            ),
        )),
        Phase("api-sections", (
            Section(
                "Enrollment open", _enrollment, endpoint="Clan/AcceptingNewClans", always_refresh=True,
                skip=None if settings.enable_enrollment else "Enrollment disabled",
            ),
            Section(
                "Alert", _alert, endpoint="Event/GetCurrentAlert", always_refresh=True,
                skip=None if settings.enable_alert else "Alert fixed by SITE_ALERT",
            ),
            Section("Clans", _clans, endpoint="Clan/GetAllClans", depends_on=(("Clan", "GetAllClans"),)),
            Section("Members", _members, endpoint="Clan/GetAllMembers", depends_on=(("Clan", "GetAllMembers"),)),
            Section("Events", _events, endpoint="Event/GetAllEvents", depends_on=(("Tournament", "GetAllEvents"),)),
            Section(
                "Modifiers", _modifiers, endpoint="Component/GetAllModifiers",
                depends_on=(("Component", "GetAllModifiers"),),
            ),
            Section(
                "Medals - Member", _member_medals, endpoint="Component/GetAllMedals",
                depends_on=(("Component", "GetAllMedals"),),
            ),
            Section(
                "Medals - Clan", _clan_medals, endpoint="Component/GetAllClanMedals",
                depends_on=(("Component", "GetAllClanMedals"),),
            ),
            Section(
                "Current event - Leaderboard", _current_leaderboard, endpoint="Leaderboard/GetLeaderboard",
                depends_on=(("Leaderboard", "GetLeaderboard"),),
            ),
            Section(
                "Current event - Clan leaderboards", _current_clan_leaderboard,
                endpoint="Leaderboard/GetClanLeaderboard",
                depends_on=(("Leaderboard", "GetClanLeaderboard"),),
            ),
            Section(
                "Current event - Match history", _match_history, endpoint="Leaderboard/GetAllPlayersHistory",
                depends_on=(("Leaderboard", "GetAllPlayersHistory"),),
                skip=None if settings.enable_match_history else "ENABLE_MATCH_HISTORY=false",
            ),
            Section(
                "Previous event - Clan leaderboards", _previous_clan_leaderboard,
                endpoint="Leaderboard/GetPreviousClanLeaderboard",
                depends_on=(("Leaderboard", "GetPreviousClanLeaderboard"),),
                skip=None if settings.enable_previous_leaderboards else "ENABLE_PREVIOUS_LEADERBOARDS=false",
            ),
        )),
    )
