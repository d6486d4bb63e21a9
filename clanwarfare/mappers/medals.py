from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..constants import MedalType
from ..models.snapshot import Medal
from ..utils.grammar import decode
from .common import first_of, require

_ID_KEYS = ("Id", "MedalId", "UnlockId")
_TIER_KEYS = ("Tier", "MedalTier")


@dataclass(frozen=True)
class MedalSet:
    medals: list[Medal] = field(default_factory=list)
    totals: dict[str, int] = field(default_factory=dict)


def _totals(medals: Iterable[Medal]) -> dict[str, int]:
    out: dict[str, int] = {"total": 0}
    for m in medals:
        n = m.count or 1
        out["total"] += n
        out[str(m.tier)] = out.get(str(m.tier), 0) + n
    return out


def parse_medals(raw: list[dict[str, Any]] | None, owner_type: MedalType, minimum_tier: int = 0) -> MedalSet:
    """
    Normalize one batch of upstream medal/award records.

    Duplicates of the same (id, owner_type) inside the batch collapse into the
    first occurrence, with the later recipients appended to its label list.
    Medals whose tier is <= minimum_tier are dropped. Order follows the first
    occurrence in the input.
    """
    if not raw:
        return MedalSet()

    order: list[tuple[Any, MedalType]] = []
    fields: dict[tuple[Any, MedalType], dict[str, Any]] = {}
    for rec in raw:
        medal_id = require(rec, _ID_KEYS, "medal")
        tier = first_of(rec, _TIER_KEYS) or 1
        if tier <= minimum_tier:
            continue
        label = decode(rec.get("AwardedTo") or "")
        key = (medal_id, owner_type)
        existing = fields.get(key)
        if existing:
            existing["label"].append(label)
            continue
        order.append(key)
        fields[key] = {
            "id": medal_id,
            "type": owner_type,
            "tier": tier,
            "name": rec.get("Name"),
            "description": rec.get("Description"),
            "count": rec.get("Count") or None,
            "label": [label],
        }

    medals = [Medal(**fields[k]) for k in order]
    return MedalSet(medals=medals, totals=_totals(medals))
