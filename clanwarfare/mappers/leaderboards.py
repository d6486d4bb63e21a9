from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional

from ..constants import DIVISIONS, MatchResult
from ..errors import RecordParseError
from ..models.snapshot import (
    ClanStanding, Division, DivisionLeaderboard, GameSummary, MatchHistoryEntry, Totals,
)
from ..utils import stats, urls
from ..utils.grammar import decode
from .bonuses import parse_bonuses
from .common import first_of, machine_readable, require, require_list
from .entities import played_totals


@dataclass(frozen=True)
class ClanLeaderboard:
    totals: dict[str, Totals] = field(default_factory=dict)
    last_checked: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchHistory:
    entries: dict[str, list[MatchHistoryEntry]] = field(default_factory=dict)
    limit: Optional[int] = None


_STANDING_KEYS = frozenset({
    "groupId", "clanId", "id", "name", "rank", "score", "totalScore",
    "gamesPlayed", "games", "active", "totalActive", "size",
})


def _standing(rec: Any) -> ClanStanding:
    if not isinstance(rec, dict):
        raise RecordParseError("clan standing", f"expected an object, got {type(rec).__name__}", rec)
    clan_id = first_of(rec, ("groupId", "clanId", "id"))
    score = first_of(rec, ("score", "totalScore"))
    return ClanStanding(
        **{k: v for k, v in rec.items() if k not in _STANDING_KEYS},
        id=str(clan_id) if clan_id is not None else None,
        name=decode(rec.get("name")) or None,
        rank=rec.get("rank"),
        score=stats.total(score) if score is not None else None,
        games=first_of(rec, ("gamesPlayed", "games")),
        active=first_of(rec, ("active", "totalActive")),
        size=rec.get("size"),
    )


def division_leaderboards(source: dict[str, Any], suffix: str = "") -> list[DivisionLeaderboard]:
    """One leaderboard per division present (and non-empty) in source, in division order."""
    out: list[DivisionLeaderboard] = []
    for key, name, size in DIVISIONS:
        rows = source.get(f"{key}{suffix}")
        if not rows:
            continue
        out.append(DivisionLeaderboard(
            leaderboard=[_standing(r) for r in require_list(rows, "clan standing")],
            division=Division(name=name, size=size),
        ))
    return out


def map_current_leaderboards(payload: Any) -> list[DivisionLeaderboard]:
    if not isinstance(payload, dict):
        raise RecordParseError("leaderboard", f"expected an object, got {type(payload).__name__}")
    return division_leaderboards(payload, "Leaderboard")


def map_clan_leaderboard(rows: Any, event_id: Optional[int] = None) -> ClanLeaderboard:
    """
    Per-member totals of a clan leaderboard, keyed by member id. Members who
    have not played are left out, but still count toward the last-checked
    times of themselves and their clan.
    """
    totals: dict[str, Totals] = {}
    last_checked: dict[str, str] = {}
    for rec in require_list(rows, "clan leaderboard"):
        member_id = str(require(rec, ("idStr",), "clan leaderboard"))
        clan_id = str(require(rec, ("clanId",), "clan leaderboard"))

        if (rec.get("gamesPlayed") or 0) > 0:
            path = urls.profile_url(clan_id, member_id, event_id) if event_id else urls.current_event_url(clan_id, member_id)
            totals[member_id] = played_totals(rec, path=path, with_bonuses=True, event_id=event_id)

        if rec.get("lastChecked"):
            checked = machine_readable(rec["lastChecked"], "clan leaderboard")
            last_checked[member_id] = checked
            if checked > last_checked.get(clan_id, ""):
                last_checked[clan_id] = checked

    return ClanLeaderboard(totals=totals, last_checked=last_checked)


def map_previous_clan_leaderboard(payload: Any) -> tuple[Optional[int], ClanLeaderboard]:
    boards = require_list(payload, "previous clan leaderboard")
    if not boards:
        return None, ClanLeaderboard()
    first = boards[0]
    event_id = require(first, ("eventId",), "previous clan leaderboard")
    return event_id, map_clan_leaderboard(first.get("leaderboardList"), event_id)


def _result(won: Any) -> MatchResult:
    if won is True:
        return MatchResult.WIN
    if won is False:
        return MatchResult.LOSS
    return MatchResult.UNKNOWN


def map_match_history(payload: Any) -> MatchHistory:
    if not isinstance(payload, dict):
        raise RecordParseError("match history", f"expected an object, got {type(payload).__name__}")
    entries: dict[str, list[MatchHistoryEntry]] = {}
    for match in require_list(payload.get("history"), "match history"):
        member_id = str(require(match, ("memberShipIdStr",), "match history"))
        entries.setdefault(member_id, []).append(MatchHistoryEntry(
            game=GameSummary(
                path=urls.pgcr_url(match.get("pgcrId")),
                is_external=True,
                result=_result(match.get("gameWon")),
                name=match.get("gameType"),
                label=match.get("map"),
                end_date=machine_readable(match.get("datePlayed"), "match history"),
            ),
            kills=match.get("kills") or 0,
            assists=match.get("assists") or 0,
            deaths=match.get("deaths") or 0,
            bonuses=parse_bonuses(match, True),
            score=stats.total(match.get("totalScore")),
        ))
    return MatchHistory(entries=entries, limit=payload.get("matchHistorySize"))
