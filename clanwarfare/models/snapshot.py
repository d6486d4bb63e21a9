from __future__ import annotations
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..constants import BUNGIE_DISABLED_STATUS_CODES, MedalType, MatchResult


class Record(BaseModel):
    """Immutable snapshot record, serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def doc(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Medal(Record):
    id: int | str
    type: MedalType
    tier: int = 1
    name: Optional[str] = None
    description: Optional[str] = None
    count: Optional[int] = None
    label: list[str] = []


class Bonus(Record):
    short_name: str
    count: int | float


class AvatarLayer(Record):
    color: Optional[Any] = None
    icon: Optional[str] = None


class ClanAvatar(Record):
    color: Optional[Any] = None
    foreground: AvatarLayer
    background: AvatarLayer


class Clan(Record):
    path: str
    id: str
    name: str
    tag: str = ""
    motto: str = ""
    description: Optional[str] = None
    avatar: ClanAvatar
    medals: list[Medal] = []
    medal_totals: dict[str, int] = {}


class MemberAvatar(Record):
    icon: Optional[str] = None


class Platform(Record):
    id: int
    percentage: int


class Tag(Record):
    name: str


class Totals(Record):
    """Stat block. Gameplay fields stay None (omitted) until games > 0."""
    event_id: Optional[int] = None
    last_played: Optional[str] = None
    path: Optional[str] = None
    rank: Optional[bool] = None
    games: Optional[int] = None
    wins: Optional[int] = None
    kills: Optional[int] = None
    assists: Optional[int] = None
    deaths: Optional[int] = None
    kd: Optional[float] = None
    kda: Optional[float] = None
    ppg: Optional[float] = None
    score: Optional[int] = None
    bonuses: Optional[list[Bonus]] = None


class GameSummary(Record):
    path: str
    result: bool | MatchResult
    name: Optional[str] = None
    label: Optional[str] = None
    end_date: Optional[str] = None
    is_external: Optional[bool] = None
    medals: Optional[list[Medal]] = None


class PastEvent(Record):
    id: int
    game: GameSummary
    rank: str
    overall: str
    games: int
    wins: int
    kd: float
    kda: float
    bonuses: list[Bonus]
    bonus_columns: list[str]
    ppg: Optional[float] = None
    score: int


class Member(Record):
    path: str
    id: str
    clan_id: str
    name: str
    avatar: MemberAvatar
    platforms: list[Platform]
    tags: Optional[list[Tag]] = None
    medals: Optional[list[Medal]] = None
    totals: Totals
    past_events: Optional[list[PastEvent]] = None


class EventMedals(Record):
    clans: Optional[list[Medal]] = None
    members: Optional[list[Medal]] = None


class EventStats(Record):
    total_clans: Optional[int] = None
    total_active: Optional[int] = None
    total_games: Optional[int] = None


class Event(Record):
    path: str
    id: int
    name: str
    description: Optional[str] = None
    sponsor: Optional[str] = None
    start_date: str
    end_date: str
    is_current: Optional[bool] = None
    is_past: Optional[bool] = None
    is_future: Optional[bool] = None
    is_calculated: Optional[bool] = None
    modifiers: list[int] = []
    medals: Optional[EventMedals] = None
    stats: Optional[EventStats] = None
    stats_games_threshold: int


class Modifier(Record):
    id: int
    name: str
    short_name: str
    description: Optional[str] = None
    scoring_modifier: bool = False
    bonus: int | float = 0
    creator_id: Optional[str] = None
    label: str = ""


class Division(Record):
    name: str
    size: str


class ClanStanding(Record):
    """Division standing row; upstream fields not listed here pass through."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    rank: Optional[int] = None
    score: Optional[int] = None
    games: Optional[int] = None
    active: Optional[int] = None
    size: Optional[int] = None


class DivisionLeaderboard(Record):
    leaderboard: list[ClanStanding]
    division: Division


class MatchHistoryEntry(Record):
    game: GameSummary
    kills: int
    assists: int
    deaths: int
    bonuses: list[Bonus]
    score: int


class ApiStatus(Record):
    bungie_status: int = BUNGIE_DISABLED_STATUS_CODES[0]
    enrollment_open: bool = False
    alert: Optional[str] = None
    updated_date: str


# Always serialized, as null when unset
_NULLABLE_FIELDS = ("currentEventId", "previousEventId", "matchHistoryLimit")


class Snapshot(Record):
    api_status: ApiStatus
    clans: list[Clan] = []
    members: list[Member] = []
    events: list[Event] = []
    modifiers: list[Modifier] = []
    medals: list[Medal] = []
    current_event_id: Optional[int] = None
    current_event_stats_games_threshold: Optional[int] = None
    current_leaderboards: list[DivisionLeaderboard] = []
    current_clan_leaderboard: dict[str, Totals] = {}
    previous_event_id: Optional[int] = None
    previous_clan_leaderboard: dict[str, Totals] = {}
    match_history: dict[str, list[MatchHistoryEntry]] = {}
    match_history_limit: Optional[int] = None
    last_checked: dict[str, str] = {}
    leaderboards: dict[int, list[DivisionLeaderboard]] = Field(default_factory=dict)

    def doc(self) -> dict:
        d = super().doc()
        for key in _NULLABLE_FIELDS:
            d.setdefault(key, None)
        return d

    def dangling_references(self) -> list[str]:
        """Nested ids that do not resolve to a top-level record."""
        clan_ids = {c.id for c in self.clans}
        member_ids = {m.id for m in self.members}
        event_ids = {e.id for e in self.events}
        modifier_ids = {m.id for m in self.modifiers}
        out: list[str] = []
        for m in self.members:
            if m.clan_id not in clan_ids:
                out.append(f"member {m.id} -> clan {m.clan_id}")
        for e in self.events:
            for mod_id in e.modifiers:
                if mod_id not in modifier_ids:
                    out.append(f"event {e.id} -> modifier {mod_id}")
        if self.current_event_id is not None and self.current_event_id not in event_ids:
            out.append(f"currentEventId -> event {self.current_event_id}")
        if self.previous_event_id is not None and self.previous_event_id not in event_ids:
            out.append(f"previousEventId -> event {self.previous_event_id}")
        for board in (self.current_clan_leaderboard, self.previous_clan_leaderboard):
            for member_id in board:
                if member_id not in member_ids:
                    out.append(f"leaderboard -> member {member_id}")
        for member_id in self.match_history:
            if member_id not in member_ids:
                out.append(f"matchHistory -> member {member_id}")
        return out
