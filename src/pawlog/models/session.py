"""Pydantic models for derived sleep and walk sessions.

Sessions are views over the event log. They are never persisted and go stale
as soon as the log changes.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .event import EventType, PuppyEvent, minutes_between

SHORT_NAP_MINUTES = 15


class SleepSession(BaseModel):
    """A sleep event paired with the wake event that closed it (if any)."""

    id: str = Field(description="Sleep event's session_link_id, else the sleep event's id")
    start_time: datetime = Field(description="Time of the sleep event")
    end_time: datetime | None = Field(default=None, description="Time of the wake event; None while ongoing")
    start_event_id: str = Field(description="Id of the sleep event")
    end_event_id: str | None = Field(default=None, description="Id of the matched wake event")

    model_config = {"frozen": True}

    @property
    def is_ongoing(self) -> bool:
        return self.end_time is None

    def duration_minutes(self, now: datetime | None = None) -> int:
        """Length of the session; ongoing sessions are measured up to ``now``."""
        end = self.end_time or now
        if end is None:
            return 0
        return max(0, minutes_between(end, self.start_time))

    @property
    def is_short_nap(self) -> bool:
        return not self.is_ongoing and self.duration_minutes() < SHORT_NAP_MINUTES


class WalkSession(BaseModel):
    """A walk event and the potty events logged as happening during it."""

    id: str = Field(description="Id of the walk event")
    walk_event: PuppyEvent
    child_potty_events: list[PuppyEvent] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def start_time(self) -> datetime:
        return self.walk_event.time

    @property
    def has_pee(self) -> bool:
        return any(e.type == EventType.PEE for e in self.child_potty_events)

    @property
    def has_poop(self) -> bool:
        return any(e.type == EventType.POOP for e in self.child_potty_events)
