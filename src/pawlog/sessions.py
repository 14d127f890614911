"""Session reconstruction over the raw event log.

Sleep and wake events are stored separately; walks and the potty breaks that
happened during them are stored separately too. The functions here group them
back into sessions for display and statistics. They never modify the log and
keep no state between calls.

Two entry points disagree on purpose about what "ongoing" means:

* ``build_sleep_sessions`` treats every sleep event without a matched wake as
  ongoing, so several sleeps with no wakes yield several ongoing sessions.
* ``ongoing_sleep_session`` only surfaces the most recent unmatched sleep,
  because only one sleep can be in progress from the caregiver's point of view.
"""

import logging
import uuid
from datetime import datetime
from typing import Iterable, Optional

from .models.event import EventType, PuppyEvent, chronological, of_type
from .models.session import SleepSession, WalkSession

logger = logging.getLogger(__name__)


def _match_wake(
    sleep: PuppyEvent,
    wakes: list[PuppyEvent],
    matched_ids: set[str],
) -> Optional[PuppyEvent]:
    """Pick the wake event that closes ``sleep``.

    An unmatched wake after the sleep sharing its session_link_id wins. Otherwise
    the earliest unmatched wake strictly after the sleep is used. A wake never
    closes a sleep that started after it.
    """
    if sleep.session_link_id is not None:
        for wake in wakes:
            if (
                wake.session_link_id == sleep.session_link_id
                and wake.time > sleep.time
                and wake.id not in matched_ids
            ):
                return wake

    following = [w for w in wakes if w.time > sleep.time and w.id not in matched_ids]
    if not following:
        return None
    return min(following, key=lambda w: w.time)


def _session_id(sleep: PuppyEvent) -> str:
    return sleep.session_link_id or sleep.id


def build_sleep_sessions(events: Iterable[PuppyEvent]) -> list[SleepSession]:
    """Pair sleep events with wake events.

    Sleep events are processed oldest first; each wake can close at most one
    sleep. Orphaned wakes are left out. The result is sorted by start time.
    """
    events = list(events)
    sleeps = chronological(of_type(events, EventType.SLEEP))
    wakes = chronological(of_type(events, EventType.WAKE))

    sessions: list[SleepSession] = []
    matched_ids: set[str] = set()

    for sleep in sleeps:
        wake = _match_wake(sleep, wakes, matched_ids)
        if wake is not None:
            matched_ids.add(wake.id)

        sessions.append(
            SleepSession(
                id=_session_id(sleep),
                start_time=sleep.time,
                end_time=wake.time if wake else None,
                start_event_id=sleep.id,
                end_event_id=wake.id if wake else None,
            )
        )

    logger.debug(
        "Built %d sleep sessions (%d matched, %d orphaned wakes)",
        len(sessions),
        len(matched_ids),
        len(wakes) - len(matched_ids),
    )
    return sorted(sessions, key=lambda s: s.start_time)


def _has_matching_wake(sleep: PuppyEvent, wakes: list[PuppyEvent]) -> bool:
    # A linked wake only closes the sleep when it comes later, which any later wake does too
    return any(w.time > sleep.time for w in wakes)


def _most_recent_unmatched_sleep(events: list[PuppyEvent]) -> Optional[PuppyEvent]:
    sleeps = sorted(of_type(events, EventType.SLEEP), key=lambda e: e.time, reverse=True)
    wakes = of_type(events, EventType.WAKE)

    for sleep in sleeps:
        if not _has_matching_wake(sleep, wakes):
            return sleep
    return None


def ongoing_sleep_session(events: Iterable[PuppyEvent]) -> Optional[SleepSession]:
    """Return the sleep currently in progress, if any.

    Scans sleep events newest first and returns the first one with no wake after it,
    linked or not. Linked wakes logged before the sleep are ignored.
    """
    sleep = _most_recent_unmatched_sleep(list(events))
    if sleep is None:
        return None
    return SleepSession(
        id=_session_id(sleep),
        start_time=sleep.time,
        start_event_id=sleep.id,
    )


def ongoing_sleep_link_id(events: Iterable[PuppyEvent]) -> Optional[str]:
    """Return the link id a wake event should carry to close the ongoing sleep."""
    sleep = _most_recent_unmatched_sleep(list(events))
    if sleep is None:
        return None
    return _session_id(sleep)


def sleep_event(time: datetime, **fields) -> PuppyEvent:
    """Create a sleep event with a fresh session link id."""
    fields.setdefault("session_link_id", str(uuid.uuid4()))
    return PuppyEvent.create(EventType.SLEEP, time, **fields)


def wake_event(events: Iterable[PuppyEvent], time: datetime, **fields) -> PuppyEvent:
    """Create a wake event stamped with the ongoing sleep's link id."""
    link_id = ongoing_sleep_link_id(events)
    if link_id is not None:
        fields.setdefault("session_link_id", link_id)
    return PuppyEvent.create(EventType.WAKE, time, **fields)


def build_walk_sessions(events: Iterable[PuppyEvent]) -> list[WalkSession]:
    """Group each walk with the potty events whose parent_id names it.

    Membership is by parent_id only; a potty event logged during a walk's time
    span but pointing elsewhere (or nowhere) is not included.
    """
    events = chronological(events)
    walks = of_type(events, EventType.WALK)

    children: dict[str, list[PuppyEvent]] = {}
    for event in events:
        if event.is_potty and event.parent_id is not None:
            children.setdefault(event.parent_id, []).append(event)

    return [
        WalkSession(
            id=walk.id,
            walk_event=walk,
            child_potty_events=children.get(walk.id, []),
        )
        for walk in walks
    ]


def contained_potty_event_ids(events: Iterable[PuppyEvent]) -> set[str]:
    """Ids of potty events that belong to a walk and should not be listed on their own."""
    return {e.id for e in events if e.is_potty and e.parent_id is not None}
