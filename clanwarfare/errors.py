from __future__ import annotations


class ClanWarfareError(Exception):
    """Base class for every error raised by the fetch pipeline."""


class CacheMiss(ClanWarfareError, LookupError):
    """No cache entry exists for an endpoint."""

    def __init__(self, endpoint: str, path: str):
        super().__init__(f"No cached payload for '{endpoint}' at {path}")
        self.endpoint = endpoint
        self.path = path


class RecordParseError(ClanWarfareError, ValueError):
    """An upstream record could not be mapped to its canonical shape."""

    def __init__(self, kind: str, reason: str, record: object = None):
        super().__init__(f"Cannot parse {kind} record: {reason}")
        self.kind = kind
        self.reason = reason
        self.record = record


class MergeConflict(ClanWarfareError):
    """Two sections of one run wrote the same snapshot field."""


class SectionError(ClanWarfareError):
    """A section of the fetch run failed; the run is aborted."""

    def __init__(self, section: str, cause: BaseException):
        super().__init__(f"Section '{section}' failed: {cause}")
        self.section = section
        self.cause = cause
