"""Append-only event log for Pawlog."""

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from .models.event import PuppyEvent, chronological

logger = logging.getLogger(__name__)


class LogRecord(BaseModel):
    """One line of events.jsonl.

    ``put`` adds an event or replaces an earlier version with the same id;
    ``delete`` removes the event with ``event_id`` from later snapshots.
    """

    op: Literal["put", "delete"] = Field(description="Record kind")
    event: PuppyEvent | None = Field(default=None, description="Event payload for put records")
    event_id: str | None = Field(default=None, description="Target id for delete records")

    model_config = {"frozen": True}


class EventLog:
    """Append-only event log.

    Writes records to <data_dir>/events.jsonl.
    Never truncates or rewrites; only appends. Edits and deletions are new
    records, resolved when a snapshot is read.
    """

    def __init__(self, path: Path):
        """Initialize event log.

        Args:
            path: Path to events.jsonl file
        """
        self.path = path

    def _append(self, record: LogRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record.model_dump(mode="json", exclude_none=True)) + "\n")

    def _read_records(self) -> list[LogRecord]:
        if not self.path.exists():
            return []

        records: list[LogRecord] = []
        malformed_count = 0

        with open(self.path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(LogRecord(**json.loads(line)))
                except (json.JSONDecodeError, ValidationError, TypeError) as e:
                    malformed_count += 1
                    logger.warning("Skipping malformed line %d in %s: %s", line_no, self.path, e)

        if malformed_count > 0:
            logger.warning("Skipped %d malformed line(s) in %s", malformed_count, self.path)

        return records

    def _current(self) -> dict[str, PuppyEvent]:
        current: dict[str, PuppyEvent] = {}
        for record in self._read_records():
            if record.op == "put" and record.event is not None:
                current[record.event.id] = record.event
            elif record.op == "delete" and record.event_id is not None:
                current.pop(record.event_id, None)
        return current

    def append(self, event: PuppyEvent) -> PuppyEvent:
        """Log a new event.

        Raises:
            ValueError: If an event with the same id is already in the log
        """
        if event.id in self._current():
            raise ValueError(f"Event already logged: {event.id}")
        self._append(LogRecord(op="put", event=event))
        logger.info("Logged %s event %s at %s", event.type.value, event.id, event.time.isoformat())
        return event

    def replace(self, event: PuppyEvent) -> PuppyEvent:
        """Record an edited version of an existing event.

        Raises:
            KeyError: If no event with this id is in the log
        """
        if event.id not in self._current():
            raise KeyError(event.id)
        self._append(LogRecord(op="put", event=event))
        logger.info("Replaced event %s", event.id)
        return event

    def delete(self, event_id: str) -> None:
        """Remove an event from future snapshots.

        Raises:
            KeyError: If no event with this id is in the log
        """
        if event_id not in self._current():
            raise KeyError(event_id)
        self._append(LogRecord(op="delete", event_id=event_id))
        logger.info("Deleted event %s", event_id)

    def get(self, event_id: str) -> PuppyEvent | None:
        return self._current().get(event_id)

    def snapshot(self) -> list[PuppyEvent]:
        """Current events sorted by time.

        The returned list is a private copy; later appends do not affect it.
        """
        return chronological(self._current().values())
