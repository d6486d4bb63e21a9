from __future__ import annotations
import asyncio
import shutil
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from ..cache.gateway import CacheGateway
from ..config import SETTINGS, Settings
from ..constants import BUNGIE_DISABLED_STATUS_CODES, MACHINE_READABLE, MedalType
from ..errors import MergeConflict, SectionError
from ..models.snapshot import ApiStatus, Snapshot
from ..utils.http import UpstreamClient
from .sections import (
    LAST_UPDATED_ENDPOINT, Phase, RunContext, Section, SectionIO, SectionResult, build_phases, needs_refresh,
)

log = structlog.get_logger()

_API_STATUS_FIELDS = ("bungie_status", "enrollment_open", "alert")
# Fields more than one section may contribute to, and how they combine
_EXTEND_FIELDS = {"medals"}
_LATEST_FIELDS = {"last_checked"}


class SectionState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SectionRun:
    phase: str
    name: str
    state: SectionState = SectionState.PENDING
    force_refresh: Optional[bool] = None
    duration_s: Optional[float] = None
    detail: Optional[str] = None


@dataclass
class _Fields:
    """Snapshot fields accumulated over a run; only the orchestrator writes here."""
    values: dict[str, Any]
    owners: dict[str, str] = field(default_factory=dict)

    def merge(self, section: str, updates: dict[str, Any]) -> None:
        for key, value in updates.items():
            if key in _EXTEND_FIELDS:
                self.values[key] = [*self.values[key], *value]
            elif key in _LATEST_FIELDS:
                merged = dict(self.values[key])
                for k, v in value.items():
                    if v > merged.get(k, ""):
                        merged[k] = v
                self.values[key] = merged
            else:
                owner = self.owners.get(key)
                if owner is not None:
                    raise MergeConflict(f"'{key}' written by both '{owner}' and '{section}'")
                self.owners[key] = section
                self.values[key] = value


def _defaults(settings: Settings) -> dict[str, Any]:
    return {
        "bungie_status": BUNGIE_DISABLED_STATUS_CODES[0],
        "enrollment_open": False,
        "alert": settings.site_alert,
        "clans": [],
        "members": [],
        "events": [],
        "modifiers": [],
        "medals": [],
        "current_event_id": None,
        "current_event_stats_games_threshold": None,
        "current_leaderboards": [],
        "current_clan_leaderboard": {},
        "previous_event_id": None,
        "previous_clan_leaderboard": {},
        "match_history": {},
        "match_history_limit": None,
        "last_checked": {},
        "leaderboards": {},
    }


def remove_artifacts(settings: Settings) -> None:
    for d in (settings.artifacts_dir, settings.dist_dir):
        p = Path(d)
        if p.exists():
            shutil.rmtree(p)
            log.warning("artifacts_removed", path=str(p))


class FetchOrchestrator:
    """
    Runs the fetch graph: phases strictly in order, the sections of a phase
    concurrently. Each section returns a SectionResult; results are merged in
    declared order once the whole phase has settled. Any failure aborts the
    run, removes the build artifact directories and raises SectionError.
    """

    def __init__(
        self,
        client: UpstreamClient,
        settings: Settings = SETTINGS,
        gateway: Optional[CacheGateway] = None,
        phases: Optional[tuple[Phase, ...]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.settings = settings
        self.client = client
        self.gateway = gateway or CacheGateway(client, settings)
        self.phases = phases if phases is not None else build_phases(settings)
        self.clock = clock
        self.runs: list[SectionRun] = [
            SectionRun(phase=p.name, name=s.name) for p in self.phases for s in p.sections
        ]

    def _run_for(self, section: Section) -> SectionRun:
        return next(r for r in self.runs if r.name == section.name)

    async def _run_section(self, section: Section, ctx: RunContext) -> SectionResult:
        run = self._run_for(section)
        run.state = SectionState.RUNNING
        run.force_refresh = needs_refresh(section, ctx.cached_times, ctx.current_times)
        started = time.perf_counter()
        try:
            payload = await section.load(SectionIO(self.client, self.gateway), run.force_refresh)
            result = section.mapper(payload, ctx)
        except asyncio.CancelledError:
            run.state = SectionState.FAILED
            run.detail = "cancelled"
            raise
        except Exception as e:
            run.state = SectionState.FAILED
            run.detail = str(e)
            run.duration_s = time.perf_counter() - started
            log.error("section_failed", section=section.name, error=str(e))
            raise SectionError(section.name, e) from e
        run.state = SectionState.SUCCEEDED
        run.duration_s = time.perf_counter() - started
        log.info(
            "section_ok", section=section.name,
            source="api" if run.force_refresh else "cache-first",
            duration_s=round(run.duration_s, 3),
        )
        return result

    async def _run_phase(self, phase: Phase, ctx: RunContext) -> list[tuple[Section, SectionResult]]:
        active: list[Section] = []
        for section in phase.sections:
            if section.skip:
                run = self._run_for(section)
                run.state = SectionState.SKIPPED
                run.detail = section.skip
                log.info("section_skipped", section=section.name, reason=section.skip)
            else:
                active.append(section)
        if not active:
            return []

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [(s, tg.create_task(self._run_section(s, ctx))) for s in active]
        except BaseExceptionGroup as eg:
            raise eg.exceptions[0]
        return [(s, t.result()) for s, t in tasks]

    async def run(self) -> Snapshot:
        updated_date = self.clock().strftime(MACHINE_READABLE)
        ctx = RunContext(updated_date=updated_date, settings=self.settings)
        fields = _Fields(values=_defaults(self.settings))
        log.info("retrieving_data", updated_date=updated_date)

        try:
            for phase in self.phases:
                for section, result in await self._run_phase(phase, ctx):
                    try:
                        fields.merge(section.name, dict(result.updates))
                    except MergeConflict as e:
                        raise SectionError(section.name, e) from e
                    if result.context:
                        ctx = replace(ctx, **result.context)
            snapshot = self._build(fields.values, updated_date)
        except SectionError:
            remove_artifacts(self.settings)
            raise

        if ctx.last_updated is not None:
            await self.gateway.store(LAST_UPDATED_ENDPOINT, ctx.last_updated)

        for ref in snapshot.dangling_references():
            log.warning("dangling_reference", ref=ref)
        self._summary(snapshot)
        return snapshot

    def _build(self, values: dict[str, Any], updated_date: str) -> Snapshot:
        values = dict(values)
        try:
            status = ApiStatus(updated_date=updated_date, **{k: values.pop(k) for k in _API_STATUS_FIELDS})
            return Snapshot(api_status=status, **values)
        except ValueError as e:
            raise SectionError("Snapshot", e) from e

    def _summary(self, snapshot: Snapshot) -> None:
        s = self.settings
        log.info(
            "data_retrieved",
            bungie_status=snapshot.api_status.bungie_status,
            enrollment_open=snapshot.api_status.enrollment_open,
            alert=snapshot.api_status.alert,
            clans=len(snapshot.clans),
            members=len(snapshot.members),
            members_last_checked=len(snapshot.last_checked),
            events=len(snapshot.events),
            event_leaderboards=len(snapshot.leaderboards),
            modifiers=len(snapshot.modifiers),
            member_medals=sum(1 for m in snapshot.medals if m.type is MedalType.MEMBER),
            clan_medals=sum(1 for m in snapshot.medals if m.type is MedalType.CLAN),
            current_event=snapshot.current_event_id,
            current_leaderboards=len(snapshot.current_leaderboards),
            current_clan_leaderboard=len(snapshot.current_clan_leaderboard),
            match_history=(
                f"{len(snapshot.match_history)} [limit: {snapshot.match_history_limit}]"
                if s.enable_match_history else "disabled"
            ),
            previous_event=snapshot.previous_event_id if s.enable_previous_leaderboards else "disabled",
            previous_clan_leaderboard=(
                len(snapshot.previous_clan_leaderboard) if s.enable_previous_leaderboards else "disabled"
            ),
        )


async def fetch_snapshot(settings: Settings = SETTINGS, transport=None) -> Snapshot:
    """One complete fetch run with its own HTTP client."""
    async with UpstreamClient(settings, transport=transport) as client:
        return await FetchOrchestrator(client, settings).run()
