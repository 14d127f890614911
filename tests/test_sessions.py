"""Tests for sleep and walk session reconstruction."""

from datetime import datetime, timedelta, timezone

from pawlog.models.event import EventType, PuppyEvent
from pawlog.sessions import (
    build_sleep_sessions,
    build_walk_sessions,
    contained_potty_event_ids,
    ongoing_sleep_link_id,
    ongoing_sleep_session,
    sleep_event,
    wake_event,
)

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _ev(event_id: str, event_type: EventType, minute: int, **fields) -> PuppyEvent:
    return PuppyEvent(id=event_id, time=T0 + timedelta(minutes=minute), type=event_type, **fields)


def _pairs(sessions) -> list[tuple[str, str | None]]:
    return [(s.start_event_id, s.end_event_id) for s in sessions]


def test_simple_sleep_wake_pair():
    events = [_ev("s1", EventType.SLEEP, 0), _ev("w1", EventType.WAKE, 45)]

    sessions = build_sleep_sessions(events)

    assert len(sessions) == 1
    assert sessions[0].id == "s1"
    assert sessions[0].start_time == T0
    assert sessions[0].end_time == T0 + timedelta(minutes=45)
    assert sessions[0].duration_minutes() == 45
    assert not sessions[0].is_ongoing


def test_session_id_reuses_link_id():
    events = [
        _ev("s1", EventType.SLEEP, 0, session_link_id="link-a"),
        _ev("w1", EventType.WAKE, 30, session_link_id="link-a"),
    ]
    assert build_sleep_sessions(events)[0].id == "link-a"


def test_link_id_takes_precedence_over_nearest_wake():
    events = [
        _ev("s1", EventType.SLEEP, 0, session_link_id="link-a"),
        _ev("w-early", EventType.WAKE, 5),
        _ev("w-linked", EventType.WAKE, 60, session_link_id="link-a"),
    ]

    sessions = build_sleep_sessions(events)

    assert _pairs(sessions) == [("s1", "w-linked")]


def test_link_id_without_linked_wake_falls_back_to_time():
    events = [
        _ev("s1", EventType.SLEEP, 0, session_link_id="link-a"),
        _ev("w1", EventType.WAKE, 20),
    ]
    assert _pairs(build_sleep_sessions(events)) == [("s1", "w1")]


def test_greedy_fallback_consumes_wakes_in_order():
    # Sleeps processed oldest first, each taking the earliest unmatched later wake
    events = [
        _ev("s0", EventType.SLEEP, 0),
        _ev("s10", EventType.SLEEP, 10),
        _ev("s20", EventType.SLEEP, 20),
        _ev("w5", EventType.WAKE, 5),
        _ev("w30", EventType.WAKE, 30),
    ]

    sessions = build_sleep_sessions(events)

    assert _pairs(sessions) == [("s0", "w5"), ("s10", "w30"), ("s20", None)]
    used = [s.end_event_id for s in sessions if s.end_event_id]
    assert len(used) == len(set(used))


def test_wake_before_sleep_is_never_matched():
    events = [_ev("w1", EventType.WAKE, 0), _ev("s1", EventType.SLEEP, 10)]

    sessions = build_sleep_sessions(events)

    assert _pairs(sessions) == [("s1", None)]


def test_linked_wake_before_sleep_does_not_close_it():
    events = [
        _ev("w1", EventType.WAKE, 10, session_link_id="A"),
        _ev("s1", EventType.SLEEP, 30, session_link_id="A"),
    ]

    sessions = build_sleep_sessions(events)

    assert _pairs(sessions) == [("s1", None)]
    assert ongoing_sleep_session(events).start_event_id == "s1"


def test_linked_wake_before_sleep_falls_back_to_later_wake():
    events = [
        _ev("w1", EventType.WAKE, 10, session_link_id="A"),
        _ev("s1", EventType.SLEEP, 30, session_link_id="A"),
        _ev("w2", EventType.WAKE, 60),
    ]

    sessions = build_sleep_sessions(events)

    assert _pairs(sessions) == [("s1", "w2")]
    assert all(s.end_time > s.start_time for s in sessions if s.end_time)
    assert ongoing_sleep_session(events) is None


def test_orphaned_wake_is_ignored():
    events = [
        _ev("s1", EventType.SLEEP, 0),
        _ev("w1", EventType.WAKE, 10),
        _ev("w2", EventType.WAKE, 20),
    ]
    assert _pairs(build_sleep_sessions(events)) == [("s1", "w1")]


def test_shared_link_id_on_two_sleeps():
    events = [
        _ev("s1", EventType.SLEEP, 0, session_link_id="dup"),
        _ev("s2", EventType.SLEEP, 50, session_link_id="dup"),
        _ev("w1", EventType.WAKE, 40, session_link_id="dup"),
        _ev("w2", EventType.WAKE, 70),
    ]
    assert _pairs(build_sleep_sessions(events)) == [("s1", "w1"), ("s2", "w2")]


def test_out_of_order_input_is_sorted():
    events = [
        _ev("w2", EventType.WAKE, 130),
        _ev("s2", EventType.SLEEP, 100),
        _ev("w1", EventType.WAKE, 30),
        _ev("s1", EventType.SLEEP, 0),
    ]

    sessions = build_sleep_sessions(events)

    assert _pairs(sessions) == [("s1", "w1"), ("s2", "w2")]
    assert sessions[0].start_time < sessions[1].start_time


def test_reconstruction_is_idempotent():
    events = [
        _ev("s0", EventType.SLEEP, 0),
        _ev("w5", EventType.WAKE, 5),
        _ev("s10", EventType.SLEEP, 10, session_link_id="x"),
        _ev("w30", EventType.WAKE, 30, session_link_id="x"),
        _ev("walk", EventType.WALK, 40),
        _ev("pee", EventType.PEE, 45, parent_id="walk"),
    ]

    assert build_sleep_sessions(events) == build_sleep_sessions(events)
    assert build_walk_sessions(events) == build_walk_sessions(events)
    assert [s.model_dump() for s in build_sleep_sessions(events)] == [
        s.model_dump() for s in build_sleep_sessions(list(events))
    ]


def test_empty_log():
    assert build_sleep_sessions([]) == []
    assert build_walk_sessions([]) == []
    assert ongoing_sleep_session([]) is None
    assert ongoing_sleep_link_id([]) is None


def test_ongoing_session_is_most_recent_unmatched():
    events = [_ev("s0", EventType.SLEEP, 0), _ev("s100", EventType.SLEEP, 100)]

    ongoing = ongoing_sleep_session(events)

    assert ongoing is not None
    assert ongoing.start_event_id == "s100"
    assert ongoing.is_ongoing
    # The full reconstruction still reports both as ongoing
    assert [s.is_ongoing for s in build_sleep_sessions(events)] == [True, True]


def test_no_ongoing_session_after_wake():
    events = [_ev("s1", EventType.SLEEP, 0), _ev("w1", EventType.WAKE, 30)]
    assert ongoing_sleep_session(events) is None


def test_ongoing_link_id_prefers_link_then_event_id():
    linked = [_ev("s1", EventType.SLEEP, 0, session_link_id="link-a")]
    unlinked = [_ev("s1", EventType.SLEEP, 0)]

    assert ongoing_sleep_link_id(linked) == "link-a"
    assert ongoing_sleep_link_id(unlinked) == "s1"


def test_wake_event_closes_ongoing_sleep_by_link():
    sleep = sleep_event(T0)
    wake = wake_event([sleep], T0 + timedelta(minutes=40))

    assert sleep.session_link_id
    assert wake.session_link_id == sleep.session_link_id
    assert wake.type == EventType.WAKE

    sessions = build_sleep_sessions([sleep, wake])
    assert _pairs(sessions) == [(sleep.id, wake.id)]
    assert ongoing_sleep_session([sleep, wake]) is None


def test_wake_event_without_ongoing_sleep_has_no_link():
    wake = wake_event([], T0)
    assert wake.session_link_id is None


def test_walk_collects_child_potty_events():
    events = [
        _ev("walk-a", EventType.WALK, 0, duration_min=30),
        _ev("pee-a", EventType.PEE, 10, parent_id="walk-a"),
        _ev("poop-a", EventType.POOP, 15, parent_id="walk-a"),
        _ev("pee-free", EventType.PEE, 20),
    ]

    walks = build_walk_sessions(events)

    assert len(walks) == 1
    walk = walks[0]
    assert walk.id == "walk-a"
    assert [e.id for e in walk.child_potty_events] == ["pee-a", "poop-a"]
    assert walk.has_pee and walk.has_poop


def test_walk_containment_is_by_parent_id_only():
    events = [
        _ev("walk-a", EventType.WALK, 0, duration_min=60),
        _ev("walk-b", EventType.WALK, 10, duration_min=60),
        # Logged during walk B's span but parented to walk A
        _ev("pee", EventType.PEE, 30, parent_id="walk-a"),
    ]

    walks = {w.id: w for w in build_walk_sessions(events)}

    assert [e.id for e in walks["walk-a"].child_potty_events] == ["pee"]
    assert walks["walk-b"].child_potty_events == []
    assert not walks["walk-b"].has_pee


def test_non_potty_children_are_not_collected():
    events = [
        _ev("walk-a", EventType.WALK, 0),
        _ev("moment", EventType.MOMENT, 5, parent_id="walk-a"),
    ]
    assert build_walk_sessions(events)[0].child_potty_events == []


def test_contained_potty_event_ids():
    events = [
        _ev("walk-a", EventType.WALK, 0),
        _ev("pee-a", EventType.PEE, 10, parent_id="walk-a"),
        _ev("pee-free", EventType.PEE, 20),
    ]
    assert contained_potty_event_ids(events) == {"pee-a"}


def test_short_nap_flag():
    events = [
        _ev("s1", EventType.SLEEP, 0),
        _ev("w1", EventType.WAKE, 10),
        _ev("s2", EventType.SLEEP, 60),
        _ev("w2", EventType.WAKE, 120),
    ]

    short, long = build_sleep_sessions(events)

    assert short.is_short_nap
    assert not long.is_short_nap
