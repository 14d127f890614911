"""Pydantic models for Pawlog."""

from .event import CoverageGapType, EventLocation, EventType, PuppyEvent
from .prediction import (
    EventGap,
    GapStats,
    PottyTrigger,
    Prediction,
    TriggerKind,
    Urgency,
)
from .session import SleepSession, WalkSession

__all__ = [
    # Events
    "EventType",
    "EventLocation",
    "CoverageGapType",
    "PuppyEvent",
    # Sessions
    "SleepSession",
    "WalkSession",
    # Gaps and predictions
    "EventGap",
    "GapStats",
    "Urgency",
    "TriggerKind",
    "PottyTrigger",
    "Prediction",
]
