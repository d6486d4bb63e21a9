from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from ..constants import EXCLUDED_EVENT_IDS, STATS_GAMES_THRESHOLD, MedalType, Tense
from ..models.snapshot import DivisionLeaderboard, Event, EventMedals, EventStats
from ..utils import urls
from ..utils.grammar import description
from .common import machine_readable, require, require_list
from .leaderboards import division_leaderboards
from .medals import parse_medals

log = structlog.get_logger()


@dataclass(frozen=True)
class EventSet:
    events: list[Event] = field(default_factory=list)
    current_event_id: Optional[int] = None
    current_event_stats_games_threshold: Optional[int] = None
    leaderboards: dict[int, list[DivisionLeaderboard]] = field(default_factory=dict)


def declared_tense(raw: Any) -> Optional[Tense]:
    try:
        return Tense(str(raw).strip().lower())
    except ValueError:
        return None


def reconcile_tense(declared: Optional[Tense], start_date: str, end_date: str, updated_date: str) -> Tense:
    """
    Upstream tense lags behind the clock: a 'current' event that already ended
    is past, a 'future' event that already started is current. Dates are
    machine-readable strings, so they compare lexically.
    """
    if declared is Tense.CURRENT and end_date < updated_date:
        return Tense.PAST
    if declared is Tense.FUTURE and start_date < updated_date:
        return Tense.CURRENT
    if declared is not None:
        return declared
    # unknown tense: classify from the dates alone
    if end_date < updated_date:
        return Tense.PAST
    if start_date > updated_date:
        return Tense.FUTURE
    return Tense.CURRENT


def _stats(raw: Optional[dict[str, Any]]) -> Optional[EventStats]:
    if not raw:
        return None
    return EventStats(
        total_clans=raw.get("totalClans"),
        total_active=raw.get("totalPlayers"),
        total_games=raw.get("totalGames"),
    )


def _medals(rec: dict[str, Any]) -> Optional[EventMedals]:
    clans = parse_medals(rec.get("clanMedals"), MedalType.CLAN, 1).medals
    members = parse_medals(rec.get("clanMemberMedals"), MedalType.MEMBER, 1).medals
    if not clans and not members:
        return None
    return EventMedals(clans=clans or None, members=members or None)


def map_events(payload: Any, updated_date: str) -> EventSet:
    """Map the event listing; tense is re-derived against the run's updated_date."""
    events: list[Event] = []
    leaderboards: dict[int, list[DivisionLeaderboard]] = {}
    current: Optional[tuple[int, int]] = None

    for rec in require_list(payload, "event"):
        event_id = require(rec, ("eventId",), "event")
        if event_id in EXCLUDED_EVENT_IDS:
            continue

        start_date = machine_readable(rec.get("startTime"), "event")
        end_date = machine_readable(rec.get("scoringEndTime"), "event")
        threshold = rec.get("statsGamesThreshold") or STATS_GAMES_THRESHOLD
        tense = reconcile_tense(declared_tense(rec.get("eventTense")), start_date, end_date, updated_date)
        if tense is Tense.CURRENT:
            # later current events win, matching upstream ordering
            current = (event_id, threshold)

        events.append(Event(
            path=urls.event_url(event_id),
            id=event_id,
            name=rec.get("name") or "",
            description=description(rec.get("description")),
            sponsor=rec.get("sponsoredBy"),
            start_date=start_date,
            end_date=end_date,
            is_current=True if tense is Tense.CURRENT else None,
            is_past=True if tense is Tense.PAST else None,
            is_future=True if tense is Tense.FUTURE else None,
            is_calculated=rec.get("calculated") or None,
            modifiers=[m["id"] for m in rec.get("modifiers") or [] if "id" in m],
            medals=_medals(rec),
            stats=_stats(rec.get("stats")),
            stats_games_threshold=threshold,
        ))

        boards = division_leaderboards(rec.get("result") or {})
        if boards:
            leaderboards[event_id] = boards

    if current is None:
        return EventSet(events=events, leaderboards=leaderboards)

    current_id, threshold = current
    claimed = sum(1 for e in events if e.is_current)
    if claimed > 1:
        log.warning("multiple_current_events", count=claimed, current_event_id=current_id)
    events = [
        e.model_copy(update={"path": urls.CURRENT_EVENT_ROOT_URL}) if e.id == current_id else e
        for e in events
    ]
    return EventSet(
        events=events,
        current_event_id=current_id,
        current_event_stats_games_threshold=threshold,
        leaderboards=leaderboards,
    )
