"""Pydantic models for gap history and potty predictions."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .event import EventLocation


class EventGap(BaseModel):
    """Time between two consecutive occurrences of the same event type."""

    start_time: datetime
    end_time: datetime
    duration_minutes: int
    start_location: EventLocation | None = None
    end_location: EventLocation | None = None

    model_config = {"frozen": True}

    @property
    def is_outdoor_to_outdoor(self) -> bool:
        return self.start_location == EventLocation.OUTSIDE and self.end_location == EventLocation.OUTSIDE

    @property
    def ended_indoor(self) -> bool:
        return self.end_location == EventLocation.INSIDE


class GapStats(BaseModel):
    """Summary statistics over a gap history.

    ``typical_minutes`` is None when there is no gap to summarize. Callers must
    treat that as "insufficient data", never as a zero-length gap.
    """

    count: int = Field(default=0, ge=0)
    min_minutes: int | None = None
    max_minutes: int | None = None
    mean_minutes: int | None = None
    median_minutes: int | None = None
    typical_minutes: int | None = Field(default=None, description="Central tendency chosen by config")
    statistic: Literal["median", "mean"] = "median"
    outdoor_count: int = 0
    indoor_count: int = 0
    excluded_count: int = Field(default=0, description="Gaps dropped for spanning a coverage gap")

    model_config = {"frozen": True}

    @property
    def is_sufficient(self) -> bool:
        return self.count > 0 and self.typical_minutes is not None

    @property
    def outdoor_percentage(self) -> int:
        if self.count == 0:
            return 0
        return (self.outdoor_count * 100) // self.count

    @classmethod
    def insufficient(cls, statistic: Literal["median", "mean"] = "median", excluded_count: int = 0) -> "GapStats":
        return cls(statistic=statistic, excluded_count=excluded_count)


class Urgency(str, Enum):
    """How soon the next potty break is due.

    Declaration order is the ladder order: the first five values escalate with
    elapsed time, the last three are overrides outside the ladder.
    """

    JUST_WENT = "just_went"
    NORMAL = "normal"
    ATTENTION = "attention"
    SOON = "soon"
    OVERDUE = "overdue"
    POST_ACCIDENT = "post_accident"
    COVERAGE_GAP = "coverage_gap"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        return list(Urgency).index(self)

    @property
    def is_override(self) -> bool:
        return self in (Urgency.POST_ACCIDENT, Urgency.COVERAGE_GAP, Urgency.UNKNOWN)

    @property
    def is_urgent(self) -> bool:
        return self in (Urgency.SOON, Urgency.OVERDUE, Urgency.POST_ACCIDENT)


class TriggerKind(str, Enum):
    """Context that shortens the expected gap."""

    NONE = "none"
    POST_MEAL = "post_meal"
    POST_SLEEP = "post_sleep"


class PottyTrigger(BaseModel):
    kind: TriggerKind = TriggerKind.NONE
    event_time: datetime | None = Field(default=None, description="Time of the meal or wake that triggered")
    minutes_ago: int | None = Field(default=None, description="Minutes from the trigger to now")

    model_config = {"frozen": True}


class Prediction(BaseModel):
    """Expected time of the next occurrence plus the current urgency."""

    urgency: Urgency
    expected_next_time: datetime | None = Field(
        default=None,
        description="None whenever there is no prior occurrence to predict from",
    )
    expected_gap_minutes: int | None = None
    base_gap_minutes: int | None = None
    gap_source: Literal["history", "default"] | None = None
    trigger: PottyTrigger = Field(default_factory=PottyTrigger)
    last_time: datetime | None = None
    minutes_since_last: int | None = None
    minutes_remaining: int | None = None
    last_was_indoor: bool = False
    is_night: bool = False

    model_config = {"frozen": True}

    @property
    def is_urgent(self) -> bool:
        return self.urgency.is_urgent

    @property
    def minutes_overdue(self) -> int | None:
        if self.urgency != Urgency.OVERDUE or self.minutes_remaining is None:
            return None
        return abs(self.minutes_remaining)
