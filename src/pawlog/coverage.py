"""Coverage gap helpers.

A coverage gap is a caregiver-declared period (daycare, a sitter, a trip)
during which the log is known to be incomplete. Intervals that cross one are
left out of statistics, and an open gap pauses urgency tracking.
"""

from datetime import datetime
from typing import Iterable, Optional

from .models.event import EventType, PuppyEvent, ensure_aware, of_type


def _bounds(gap: PuppyEvent) -> tuple[datetime, Optional[datetime]]:
    return gap.time, gap.end_time


def coverage_gaps(events: Iterable[PuppyEvent]) -> list[PuppyEvent]:
    return of_type(events, EventType.COVERAGE_GAP)


def interval_spans_gap(start: datetime, end: datetime, events: Iterable[PuppyEvent]) -> bool:
    """True if ``[start, end]`` overlaps any coverage gap (open gaps never end)."""
    start, end = ensure_aware(start), ensure_aware(end)
    for gap in coverage_gaps(events):
        gap_start, gap_end = _bounds(gap)
        if (gap_end is None or start < gap_end) and end > gap_start:
            return True
    return False


def is_time_covered(time: datetime, events: Iterable[PuppyEvent]) -> bool:
    time = ensure_aware(time)
    for gap in coverage_gaps(events):
        gap_start, gap_end = _bounds(gap)
        if gap_start <= time and (gap_end is None or time <= gap_end):
            return True
    return False


def active_gap(events: Iterable[PuppyEvent], now: datetime) -> Optional[PuppyEvent]:
    """The open coverage gap already in effect at ``now``, if any."""
    now = ensure_aware(now)
    active = [g for g in coverage_gaps(events) if g.end_time is None and g.time <= now]
    if not active:
        return None
    return max(active, key=lambda g: g.time)


def events_outside_gaps(events: Iterable[PuppyEvent]) -> list[PuppyEvent]:
    """Drop events that happened while a coverage gap was in effect."""
    events = list(events)
    gaps = coverage_gaps(events)
    return [
        e for e in events
        if e.type != EventType.COVERAGE_GAP and not is_time_covered(e.time, gaps)
    ]
