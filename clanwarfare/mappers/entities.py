from __future__ import annotations
import re
from typing import Any, Optional

from ..constants import (
    BLANK, BUNGIE_AVATAR_PATH, BUNGIE_BASE_URL, BUNGIE_DEFAULT_AVATAR_ICON,
    NOT_PLAYED, PLATFORM_DEFAULT, PLATFORM_PERCENTAGE, MedalType,
)
from ..models.snapshot import (
    AvatarLayer, Clan, ClanAvatar, GameSummary, Member, MemberAvatar,
    Modifier, PastEvent, Platform, Tag, Totals,
)
from ..utils import stats, urls
from ..utils.grammar import decode, description
from .bonuses import modifier_label, parse_bonuses
from .common import date_only, machine_readable, require, require_list
from .medals import parse_medals

_CLAN_ICON = re.compile(r"^.*_(\w*).*$", re.S)
_AVATAR_URL = f"{BUNGIE_BASE_URL}{BUNGIE_AVATAR_PATH}"


def _clan_icon(path: Optional[str]) -> Optional[str]:
    # ".../cb_decal_square_e2a3.png" -> "e2a3"
    if not path:
        return None
    return _CLAN_ICON.sub(r"\1", path)


def _member_icon(path: Optional[str]) -> Optional[str]:
    if not path or path == f"{_AVATAR_URL}{BUNGIE_DEFAULT_AVATAR_ICON}":
        return None
    return path.replace(_AVATAR_URL, "")


def map_clan(rec: dict[str, Any]) -> Clan:
    clan_id = str(require(rec, ("groupId",), "clan"))
    medal_set = parse_medals(rec.get("medalUnlocks"), MedalType.CLAN)
    return Clan(
        path=urls.clan_url(clan_id),
        id=clan_id,
        name=decode(rec.get("name")),
        tag=decode(rec.get("tag")),
        motto=decode(rec.get("motto")),
        description=description(rec.get("description")),
        avatar=ClanAvatar(
            color=rec.get("backgroundColor"),
            foreground=AvatarLayer(color=rec.get("emblemColor1"), icon=_clan_icon(rec.get("foregroundIcon"))),
            background=AvatarLayer(color=rec.get("emblemColor2"), icon=_clan_icon(rec.get("backgroundIcon"))),
        ),
        medals=medal_set.medals,
        medal_totals=medal_set.totals,
    )


def map_clans(payload: Any) -> list[Clan]:
    return [map_clan(rec) for rec in require_list(payload, "clan")]


def played_totals(rec: dict[str, Any], *, path: str, with_bonuses: bool = False, **extra: Any) -> Totals:
    """Totals for a record with gamesPlayed > 0; gameplay fields left unset otherwise."""
    games = rec.get("gamesPlayed") or 0
    if games <= 0:
        return Totals(**extra)
    kills = rec.get("kills") or 0
    assists = rec.get("assists") or 0
    deaths = rec.get("deaths") or 0
    score = stats.total(rec.get("totalScore"))
    return Totals(
        path=path,
        rank=True,
        games=games,
        wins=rec.get("gamesWon") or 0,
        kills=kills,
        assists=assists,
        deaths=deaths,
        kd=stats.kd(kills, deaths),
        kda=stats.kda(kills, deaths, assists),
        ppg=stats.ppg(games, score),
        score=score,
        bonuses=parse_bonuses(rec, True) if with_bonuses else None,
        **extra,
    )


def _past_event(match: dict[str, Any]) -> PastEvent:
    event_id = require(match, ("eventId",), "member history")
    results = require(match, ("results",), "member history")
    event_data = results.get("eventData") or {}
    games = results.get("gamesPlayed") or 0
    score = stats.total(results.get("totalScore"))
    kills = results.get("totalKills") or 0
    assists = results.get("totalAssists") or 0
    deaths = results.get("totalDeaths") or 0
    bonuses = parse_bonuses(results, True)
    return PastEvent(
        id=event_id,
        game=GameSummary(
            path=urls.event_url(event_id),
            result=True,
            name=event_data.get("name"),
            end_date=machine_readable(event_data.get("scoringEndDate"), "member history"),
            medals=parse_medals(match.get("medals"), MedalType.MEMBER).medals,
        ),
        rank=stats.ranking(results.get("rankInClan")),
        overall=stats.ranking(results.get("overallRank")),
        games=games,
        wins=results.get("gamesWon") or 0,
        kd=stats.kd(kills, deaths),
        kda=stats.kda(kills, deaths, assists),
        bonuses=bonuses,
        bonus_columns=[b.short_name for b in bonuses],
        ppg=stats.ppg(games, score) if games > 0 else None,
        score=score,
    )


def map_member(rec: dict[str, Any]) -> Member:
    member_id = str(require(rec, ("profileIdStr",), "member"))
    clan_id = str(require(rec, ("groupId",), "member"))
    path = urls.profile_url(clan_id, member_id)

    current = rec.get("currentScore") or {}
    if current.get("lastSeen"):
        totals = played_totals(current, path=path, last_played=date_only(current["lastSeen"]) or NOT_PLAYED)
    else:
        totals = Totals(last_played=NOT_PLAYED)

    past_events = [_past_event(m) for m in rec.get("history") or []]
    medals = parse_medals(rec.get("medalUnlocks"), MedalType.MEMBER).medals
    unlocks = rec.get("bonusUnlocks") or []

    return Member(
        path=path,
        id=member_id,
        clan_id=clan_id,
        name=rec.get("name") or BLANK,
        avatar=MemberAvatar(icon=_member_icon(rec.get("icon"))),
        platforms=[Platform(id=rec.get("membershipType") or PLATFORM_DEFAULT, percentage=PLATFORM_PERCENTAGE)],
        tags=[Tag(name=u["name"]) for u in unlocks if u.get("name")] or None,
        medals=medals or None,
        totals=totals,
        past_events=past_events or None,
    )


def map_members(payload: Any) -> list[Member]:
    return [map_member(rec) for rec in require_list(payload, "member")]


def map_modifier(rec: dict[str, Any]) -> Modifier:
    modifier_id = require(rec, ("id",), "modifier")
    name = require(rec, ("name",), "modifier")
    scoring = bool(rec.get("scoringModifier"))
    bonus = rec.get("scoringBonus") or rec.get("multiplierBonus") or 0
    return Modifier(
        id=modifier_id,
        name=name,
        short_name=rec.get("shortName") or name.split(" ")[0],
        description=rec.get("description"),
        scoring_modifier=scoring,
        bonus=bonus,
        creator_id=rec.get("createdBy") or None,
        label=modifier_label(name, bonus, scoring),
    )


def map_modifiers(payload: Any) -> list[Modifier]:
    return [map_modifier(rec) for rec in require_list(payload, "modifier")]
