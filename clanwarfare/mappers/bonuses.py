from __future__ import annotations
from enum import Enum
from typing import Any

from ..models.snapshot import Bonus

BONUS_SLOTS = ("bonusPoints1", "bonusPoints2")


class BonusKind(str, Enum):
    NORMAL = "normal"
    NOT_APPLICABLE = "not-applicable"
    TO_BE_CONFIRMED = "to-be-confirmed"


# Upstream marks placeholder bonuses/modifiers by name
_SENTINEL_NAMES = {
    "N/A": BonusKind.NOT_APPLICABLE,
    "TBC": BonusKind.TO_BE_CONFIRMED,
}


def bonus_kind(name: str | None) -> BonusKind:
    return _SENTINEL_NAMES.get((name or "").strip().upper(), BonusKind.NORMAL)


def _points(slot: Any) -> float:
    if isinstance(slot, dict):
        return slot.get("bonusPoints") or 0
    return slot or 0


def parse_bonuses(record: dict[str, Any], has_played: bool) -> list[Bonus]:
    """Both fixed bonus slots of a scored record, minus N/A and TBC placeholders."""
    out: list[Bonus] = []
    for i, key in enumerate(BONUS_SLOTS):
        slot = record.get(key)
        name = slot.get("shortName") if isinstance(slot, dict) else None
        short_name = name or f"Bonus {i + 1}"
        if bonus_kind(short_name) is not BonusKind.NORMAL:
            continue
        out.append(Bonus(short_name=short_name, count=_points(slot) if has_played else -1))
    return out


def modifier_label(name: str, bonus: float, scoring_modifier: bool) -> str:
    """Display value for a modifier badge: +N, xN, N% or the TBC / N/A stand-ins."""
    kind = bonus_kind(name)
    if kind is BonusKind.TO_BE_CONFIRMED:
        return "TBC"
    if kind is BonusKind.NOT_APPLICABLE:
        return "N/A"

    prefix = "+" if scoring_modifier else "x"
    suffix = ""
    value: float = bonus
    if bonus <= 0:
        prefix = ""
    if not scoring_modifier and bonus < 1:
        suffix = "%"
        if bonus == 0:
            value = -100
        else:
            prefix = ""
            value = bonus * 100
    if scoring_modifier and bonus == 0:
        prefix = "+"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{prefix}{value}{suffix}"
