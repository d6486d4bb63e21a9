from __future__ import annotations
from ..constants import UNRANKED

# Upstream score unit; kept as-is, not derived
SCORE_DIVISOR = 1
ASSIST_DIVISOR = 2


def total(raw_score: float | None) -> int:
    if raw_score is None:
        return 0
    return int(round(float(raw_score) / SCORE_DIVISOR))


def kd(kills: float, deaths: float) -> float:
    if not deaths:
        return round(float(kills), 2)
    return round(kills / deaths, 2)


def kda(kills: float, deaths: float, assists: float) -> float:
    return round((kills + assists / ASSIST_DIVISOR) / (deaths or 1), 2)


def ppg(games: int, score: float) -> float:
    """Points per game. Callers only ask once games > 0."""
    return round(score / games, 2)


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def ranking(value) -> str:
    """1 -> '1st', 22 -> '22nd'; zero, negative, missing or junk -> 'N/A'."""
    if isinstance(value, bool) or value is None:
        return UNRANKED
    try:
        n = int(value)
    except (TypeError, ValueError):
        return UNRANKED
    if n <= 0:
        return UNRANKED
    return _ordinal(n)
