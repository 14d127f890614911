"""Pydantic models for logged puppy events."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class EventType(str, Enum):
    """Closed set of loggable event kinds."""

    FEED = "feed"
    DRINK = "drink"
    PEE = "pee"
    POOP = "poop"
    SLEEP = "sleep"
    WAKE = "wake"
    WALK = "walk"
    GARDEN = "garden"
    TRAINING = "training"
    CRATE = "crate"
    SOCIAL = "social"
    MILESTONE = "milestone"
    BEHAVIOR = "behavior"
    WEIGHT = "weight"
    MOMENT = "moment"
    MEDICATION = "medication"
    COVERAGE_GAP = "coverage_gap"

    @property
    def is_potty(self) -> bool:
        return self in (EventType.PEE, EventType.POOP)

    @property
    def is_sleep_related(self) -> bool:
        return self in (EventType.SLEEP, EventType.WAKE)

    @property
    def requires_location(self) -> bool:
        return self.is_potty


class EventLocation(str, Enum):
    """Where a potty event happened."""

    OUTSIDE = "outside"
    INSIDE = "inside"


class CoverageGapType(str, Enum):
    """Who is looking after the puppy during a coverage gap."""

    DAYCARE = "daycare"
    FAMILY = "family"
    SITTER = "sitter"
    VACATION = "vacation"
    OTHER = "other"


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PuppyEvent(BaseModel):
    """A single logged event.

    Events are immutable. An edit produces a replacement carrying the same
    ``id`` (see ``edited``); the event log keeps only the latest version.
    """

    id: str = Field(description="Unique event identifier (uuid4)")
    time: datetime = Field(description="When the event happened; log order follows this field")
    type: EventType = Field(description="Event kind")
    created_at: datetime | None = Field(default=None, description="When the event was first logged")
    modified_at: datetime | None = Field(default=None, description="When the event was last edited")

    # Linking hints
    session_link_id: str | None = Field(
        default=None,
        description="Shared by a sleep event and the wake event that closes it",
    )
    parent_id: str | None = Field(
        default=None,
        description="Id of the walk this potty event happened during",
    )

    # Payload
    location: EventLocation | None = Field(default=None, description="Inside/outside for potty events")
    note: str | None = Field(default=None)
    duration_min: int | None = Field(default=None, ge=0)
    weight_kg: float | None = Field(default=None, ge=0.0)
    photo: str | None = Field(default=None, description="Media reference")

    # Coverage gap fields
    end_time: datetime | None = Field(default=None, description="End of a coverage gap; None while ongoing")
    gap_type: CoverageGapType | None = Field(default=None)

    model_config = {"frozen": True}

    @field_validator("time", "created_at", "modified_at", "end_time")
    @classmethod
    def _ensure_aware(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_aware(value)

    @classmethod
    def create(cls, type: EventType, time: datetime, **fields: Any) -> "PuppyEvent":
        """Create a new event with a fresh id and creation timestamp."""
        now = datetime.now(timezone.utc)
        return cls(
            id=fields.pop("id", None) or str(uuid.uuid4()),
            time=time,
            type=type,
            created_at=now,
            modified_at=now,
            **fields,
        )

    def edited(self, **changes: Any) -> "PuppyEvent":
        """Return a replacement for this event with the same identity."""
        changes.pop("id", None)
        changes.setdefault("modified_at", datetime.now(timezone.utc))
        data = self.model_dump()
        data.update(changes)
        return PuppyEvent(**data)

    @property
    def is_potty(self) -> bool:
        return self.type.is_potty

    @property
    def is_indoor(self) -> bool:
        return self.location == EventLocation.INSIDE


def of_type(events, *types: EventType) -> list[PuppyEvent]:
    """Filter events to the given types, keeping input order."""
    wanted = set(types)
    return [e for e in events if e.type in wanted]


def chronological(events) -> list[PuppyEvent]:
    """Sort events ascending by time; ties keep input order."""
    return sorted(events, key=lambda e: e.time)


def minutes_between(later: datetime, earlier: datetime) -> int:
    """Whole minutes from ``earlier`` to ``later``, truncated toward zero."""
    return int((ensure_aware(later) - ensure_aware(earlier)).total_seconds() / 60)
