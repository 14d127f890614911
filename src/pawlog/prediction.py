"""Predictive gap estimation for recurring events (chiefly potty breaks).

The estimator combines the historical rhythm from ``gaps.gap_history`` with
trigger context (a recent meal or a real nap) to estimate when the next
occurrence is due, then classifies how urgent that is right now.

Urgency is resolved in this order:

1. post-accident: the last occurrence was indoors and within the just-went window
2. coverage gap: an open coverage gap has paused tracking
3. unknown: there is no prior occurrence to predict from
4. the time ladder: just-went, normal, attention, soon, overdue
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .config import PredictionConfig, UrgencyThresholds
from .coverage import active_gap
from .gaps import gap_history, round_half_up
from .models.event import EventLocation, EventType, PuppyEvent, chronological, ensure_aware, minutes_between, of_type
from .models.prediction import PottyTrigger, Prediction, TriggerKind, Urgency
from .sleep import last_complete_sleep

logger = logging.getLogger(__name__)


def _in_trigger_window(trigger_time: datetime, last_time: datetime, now: datetime, window: int) -> bool:
    # Shortly before the last occurrence, or after it and still recent
    if trigger_time <= last_time:
        return minutes_between(last_time, trigger_time) <= window
    return minutes_between(now, trigger_time) <= window


def detect_trigger(
    events: Iterable[PuppyEvent],
    last_time: datetime,
    now: datetime,
    cfg: PredictionConfig,
) -> PottyTrigger:
    """Find the meal or nap that should shorten the expected gap, if any.

    A meal wins over a nap. Only the most recently completed sleep is
    considered, and it must last at least ``cfg.min_nap_minutes``.
    """
    now = ensure_aware(now)
    last_time = ensure_aware(last_time)
    events = [e for e in events if e.time <= now]

    meals = [
        m for m in of_type(events, EventType.FEED)
        if _in_trigger_window(m.time, last_time, now, cfg.post_meal_window_minutes)
    ]
    if meals:
        meal = chronological(meals)[-1]
        return PottyTrigger(
            kind=TriggerKind.POST_MEAL,
            event_time=meal.time,
            minutes_ago=minutes_between(now, meal.time),
        )

    nap = last_complete_sleep(events, now)
    if (
        nap is not None
        and nap.duration_minutes() >= cfg.min_nap_minutes
        and _in_trigger_window(nap.end_time, last_time, now, cfg.post_sleep_window_minutes)
    ):
        return PottyTrigger(
            kind=TriggerKind.POST_SLEEP,
            event_time=nap.end_time,
            minutes_ago=minutes_between(now, nap.end_time),
        )

    return PottyTrigger()


def adjust_gap(base_gap_minutes: int, trigger: PottyTrigger, cfg: PredictionConfig) -> int:
    """Apply the trigger multiplier, rounding half up and never going below one minute."""
    if trigger.kind == TriggerKind.POST_MEAL:
        adjusted = round_half_up(base_gap_minutes * cfg.post_meal_multiplier)
    elif trigger.kind == TriggerKind.POST_SLEEP:
        adjusted = round_half_up(base_gap_minutes * cfg.post_sleep_multiplier)
    else:
        adjusted = base_gap_minutes
    return max(1, adjusted)


def classify_urgency(
    minutes_since: int,
    expected_gap_minutes: int,
    thresholds: UrgencyThresholds,
    *,
    last_was_outdoor: bool = True,
) -> Urgency:
    """Place elapsed time on the urgency ladder.

    Boundaries: overdue at ``remaining <= 0``, soon below ``thresholds.soon``,
    attention below ``thresholds.attention``. Just-went applies while
    ``minutes_since < thresholds.just_went`` after a break logged outside; a
    break with no recorded location never counts as just-went.
    """
    if last_was_outdoor and minutes_since < thresholds.just_went:
        return Urgency.JUST_WENT

    remaining = expected_gap_minutes - minutes_since
    if remaining <= 0:
        return Urgency.OVERDUE
    if remaining < thresholds.soon:
        return Urgency.SOON
    if remaining < thresholds.attention:
        return Urgency.ATTENTION
    return Urgency.NORMAL


def predict(
    events: Iterable[PuppyEvent],
    cfg: PredictionConfig,
    now: datetime,
    event_type: EventType = EventType.PEE,
) -> Prediction:
    """Estimate when the next ``event_type`` is due and how urgent it is at ``now``.

    Never raises for any event snapshot. Events dated after ``now`` are ignored.
    """
    now = ensure_aware(now)
    events = [e for e in events if e.time <= now]
    occurrences = chronological(of_type(events, event_type))
    last: Optional[PuppyEvent] = occurrences[-1] if occurrences else None
    is_night = not cfg.is_daytime_hour(now.hour)
    just_went = cfg.thresholds.just_went

    if last is not None and last.is_indoor:
        minutes_since = minutes_between(now, last.time)
        if minutes_since < just_went:
            logger.debug("Indoor accident %d min ago; forcing post-accident urgency", minutes_since)
            return Prediction(
                urgency=Urgency.POST_ACCIDENT,
                expected_next_time=now,
                expected_gap_minutes=0,
                last_time=last.time,
                minutes_since_last=minutes_since,
                minutes_remaining=0,
                last_was_indoor=True,
                is_night=is_night,
            )

    gap = active_gap(events, now)
    if gap is not None:
        logger.debug("Coverage gap %s open since %s; tracking paused", gap.id, gap.time.isoformat())
        return Prediction(
            urgency=Urgency.COVERAGE_GAP,
            last_time=last.time if last else None,
            minutes_since_last=minutes_between(now, last.time) if last else None,
            last_was_indoor=last.is_indoor if last else False,
            is_night=is_night,
        )

    if last is None:
        return Prediction(
            urgency=Urgency.UNKNOWN,
            expected_gap_minutes=cfg.default_gap_minutes,
            base_gap_minutes=cfg.default_gap_minutes,
            gap_source="default",
            is_night=is_night,
        )

    _, stats = gap_history(events, event_type, cfg)
    if stats.is_sufficient:
        base_gap = max(1, stats.typical_minutes)
        gap_source = "history"
    else:
        base_gap = max(1, cfg.default_gap_minutes)
        gap_source = "default"

    trigger = detect_trigger(events, last.time, now, cfg)
    expected_gap = adjust_gap(base_gap, trigger, cfg)
    minutes_since = minutes_between(now, last.time)
    urgency = classify_urgency(
        minutes_since,
        expected_gap,
        cfg.thresholds,
        last_was_outdoor=last.location == EventLocation.OUTSIDE,
    )

    logger.debug(
        "Prediction for %s: base=%d (%s) trigger=%s expected=%d since=%d urgency=%s",
        event_type.value,
        base_gap,
        gap_source,
        trigger.kind.value,
        expected_gap,
        minutes_since,
        urgency.value,
    )

    return Prediction(
        urgency=urgency,
        expected_next_time=last.time + timedelta(minutes=expected_gap),
        expected_gap_minutes=expected_gap,
        base_gap_minutes=base_gap,
        gap_source=gap_source,
        trigger=trigger,
        last_time=last.time,
        minutes_since_last=minutes_since,
        minutes_remaining=expected_gap - minutes_since,
        last_was_indoor=last.is_indoor,
        is_night=is_night,
    )
