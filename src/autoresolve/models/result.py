"""EventResult, EventStatus - provider results normalized for matching."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

_FINISHED = {
    "finished", "final", "completed", "complete", "ended", "post", "closed",
    "status_final", "status_full_time", "status_final_ot", "status_final_pen", "full_time", "ft",
}
_LIVE = {"live", "in_progress", "inprogress", "in", "running", "ongoing", "status_in_progress", "status_halftime"}
_SCHEDULED = {"scheduled", "upcoming", "pre", "not_started", "notstarted", "status_scheduled", "pending"}


class EventStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> EventStatus:
        """Map a provider status string (any casing/shape) to EventStatus."""
        if isinstance(raw, EventStatus):
            return raw
        key = str(raw or "").strip().lower().replace("-", "_").replace(" ", "_")
        if key in _FINISHED:
            return cls.FINISHED
        if key in _LIVE:
            return cls.LIVE
        if key in _SCHEDULED:
            return cls.SCHEDULED
        return cls.UNKNOWN


class EventResult(BaseModel):
    """One event as reported by a result feed."""

    event_id: str
    participant_a: str = ""
    participant_b: str = ""
    winner: str | None = None  # None = no winner determined yet
    status: EventStatus = EventStatus.UNKNOWN
    scores: tuple[float, float] | None = None  # (a, b)
    source: str = ""  # feed name

    @property
    def is_finished(self) -> bool:
        return self.status == EventStatus.FINISHED
