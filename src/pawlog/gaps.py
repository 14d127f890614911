"""Gap history analysis: how long usually passes between two events of a type."""

import logging
import math
import statistics
from typing import Iterable, Optional

from .config import PredictionConfig
from .coverage import interval_spans_gap
from .models.event import EventLocation, EventType, PuppyEvent, chronological, minutes_between, of_type
from .models.prediction import EventGap, GapStats

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _is_daytime_gap(start: PuppyEvent, end: PuppyEvent, cfg: PredictionConfig) -> bool:
    return cfg.is_daytime_hour(start.time.hour) and cfg.is_daytime_hour(end.time.hour)


def calculate_gaps(
    events: Iterable[PuppyEvent],
    event_type: EventType = EventType.PEE,
    *,
    cfg: Optional[PredictionConfig] = None,
    filter_overnight: Optional[bool] = None,
) -> list[EventGap]:
    """Gaps between consecutive events of ``event_type`` in chronological order.

    With overnight filtering on, gaps longer than ``cfg.max_gap_minutes`` and
    gaps with either end outside daytime hours are skipped. Hours are read in
    each timestamp's own timezone.
    """
    cfg = cfg or PredictionConfig()
    if filter_overnight is None:
        filter_overnight = cfg.filter_overnight

    occurrences = chronological(of_type(events, event_type))
    if len(occurrences) < 2:
        return []

    gaps: list[EventGap] = []
    for start, end in zip(occurrences, occurrences[1:]):
        duration = minutes_between(end.time, start.time)
        if filter_overnight:
            if duration > cfg.max_gap_minutes:
                continue
            if not _is_daytime_gap(start, end, cfg):
                continue

        gaps.append(
            EventGap(
                start_time=start.time,
                end_time=end.time,
                duration_minutes=duration,
                start_location=start.location,
                end_location=end.location,
            )
        )

    return gaps


def gap_stats(
    gaps: list[EventGap],
    statistic: str = "median",
    *,
    excluded_count: int = 0,
) -> GapStats:
    """Summarize gaps. An empty history reports insufficient data, not zero."""
    if not gaps:
        return GapStats.insufficient(statistic=statistic, excluded_count=excluded_count)

    durations = sorted(g.duration_minutes for g in gaps)
    mean = round_half_up(statistics.fmean(durations))
    median = round_half_up(statistics.median(durations))

    return GapStats(
        count=len(durations),
        min_minutes=durations[0],
        max_minutes=durations[-1],
        mean_minutes=mean,
        median_minutes=median,
        typical_minutes=mean if statistic == "mean" else median,
        statistic=statistic,
        outdoor_count=sum(1 for g in gaps if g.end_location == EventLocation.OUTSIDE),
        indoor_count=sum(1 for g in gaps if g.ended_indoor),
        excluded_count=excluded_count,
    )


def gap_history(
    events: Iterable[PuppyEvent],
    event_type: EventType = EventType.PEE,
    cfg: Optional[PredictionConfig] = None,
) -> tuple[list[EventGap], GapStats]:
    """Gap list and statistics for ``event_type``, leaving out gaps that cross a coverage gap."""
    cfg = cfg or PredictionConfig()
    events = list(events)

    all_gaps = calculate_gaps(events, event_type, cfg=cfg)
    kept = [g for g in all_gaps if not interval_spans_gap(g.start_time, g.end_time, events)]
    excluded = len(all_gaps) - len(kept)

    stats = gap_stats(kept, cfg.gap_statistic, excluded_count=excluded)
    logger.debug(
        "Gap history for %s: %d gaps kept, %d excluded, typical=%s",
        event_type.value,
        len(kept),
        excluded,
        stats.typical_minutes,
    )
    return kept, stats
