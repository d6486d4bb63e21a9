from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..constants import DATE_FORMAT, MACHINE_READABLE
from ..errors import RecordParseError

_MISSING = object()


def first_of(record: dict, keys: Iterable[str], default: Any = None) -> Any:
    """Value of the first key present (and not None) in record."""
    for k in keys:
        v = record.get(k, _MISSING)
        if v is not _MISSING and v is not None:
            return v
    return default


def require(record: Any, keys: Iterable[str], kind: str) -> Any:
    keys = tuple(keys)
    if not isinstance(record, dict):
        raise RecordParseError(kind, f"expected an object, got {type(record).__name__}", record)
    v = first_of(record, keys, _MISSING)
    if v is _MISSING:
        raise RecordParseError(kind, f"missing field {' | '.join(keys)}", record)
    return v


def require_list(payload: Any, kind: str) -> list:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise RecordParseError(kind, f"expected a list, got {type(payload).__name__}")
    return payload


def to_utc(value: Any) -> Optional[datetime]:
    """Accept ISO8601 strings (with or without offset) or epoch seconds/millis."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        f = float(value)
        if f > 10_000_000_000:
            f = f / 1000.0
        return datetime.fromtimestamp(f, tz=timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt.astimezone(timezone.utc) if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return None


def machine_readable(value: Any, kind: str = "date") -> str:
    dt = to_utc(value)
    if dt is None:
        raise RecordParseError(kind, f"unparseable timestamp {value!r}")
    return dt.strftime(MACHINE_READABLE)


def date_only(value: Any) -> Optional[str]:
    dt = to_utc(value)
    return dt.strftime(DATE_FORMAT) if dt else None
