"""Sleep state derived from the event log."""

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from .models.event import EventType, PuppyEvent, chronological, ensure_aware, minutes_between, of_type
from .models.session import SleepSession
from .sessions import build_sleep_sessions


class SleepStatus(str, Enum):
    SLEEPING = "sleeping"
    AWAKE = "awake"
    UNKNOWN = "unknown"


class SleepState(BaseModel):
    status: SleepStatus = SleepStatus.UNKNOWN
    since: Optional[datetime] = None
    duration_minutes: int = 0

    model_config = {"frozen": True}

    @property
    def is_sleeping(self) -> bool:
        return self.status == SleepStatus.SLEEPING

    @property
    def is_awake(self) -> bool:
        return self.status == SleepStatus.AWAKE


def current_sleep_state(events: Iterable[PuppyEvent], now: datetime) -> SleepState:
    """Sleeping or awake according to the latest sleep/wake event at or before ``now``."""
    now = ensure_aware(now)
    relevant = [e for e in of_type(events, EventType.SLEEP, EventType.WAKE) if e.time <= now]
    if not relevant:
        return SleepState()

    last = chronological(relevant)[-1]
    status = SleepStatus.SLEEPING if last.type == EventType.SLEEP else SleepStatus.AWAKE
    return SleepState(
        status=status,
        since=last.time,
        duration_minutes=max(0, minutes_between(now, last.time)),
    )


def last_complete_sleep(
    events: Iterable[PuppyEvent],
    now: Optional[datetime] = None,
) -> Optional[SleepSession]:
    """Most recently ended sleep session, optionally ignoring wakes after ``now``."""
    if now is not None:
        now = ensure_aware(now)
    completed = [
        s for s in build_sleep_sessions(events)
        if s.end_time is not None and (now is None or s.end_time <= now)
    ]
    if not completed:
        return None
    return max(completed, key=lambda s: s.end_time)


def total_sleep_minutes(
    events: Iterable[PuppyEvent],
    start: datetime,
    end: datetime,
) -> int:
    """Minutes slept inside ``[start, end)``; ongoing sessions count up to ``end``."""
    start, end = ensure_aware(start), ensure_aware(end)
    total = 0
    for session in build_sleep_sessions(events):
        session_end = session.end_time or end
        clipped_start = max(session.start_time, start)
        clipped_end = min(session_end, end)
        if clipped_end > clipped_start:
            total += minutes_between(clipped_end, clipped_start)
    return total
