"""Unlock schedule model, validated once at the storage boundary."""

from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# Format used for persisted due dates
DUE_FORMAT = "%Y-%m-%d %H:%M:%S"


class UnlockSchedule(BaseModel):
    """Recurrence rule bound to one novel.

    ``next_due_at`` is not part of the stored schedule list; it is persisted
    per novel and attached when schedules are loaded.
    """

    model_config = {"populate_by_name": True}

    novel_id: int
    novel_name: str = ""
    search_term: str = ""
    days: int = Field(default=1, ge=1, le=365)
    unlock_time: time = Field(default=time(2, 0), alias="time")
    enabled: bool = True
    skip_weekends: bool = True
    next_due_at: Optional[datetime] = Field(default=None, exclude=True)

    @field_validator("unlock_time", mode="before")
    @classmethod
    def parse_anchor_time(cls, v):
        """Accept 'HH:MM', 'HH:MM:SS' or a bare hour like '2'."""
        if isinstance(v, str):
            parts = v.strip().split(":")
            try:
                hour = int(parts[0])
                minute = int(parts[1]) if len(parts) > 1 and parts[1] else 0
                return time(hour, minute)
            except ValueError as e:
                raise ValueError(f"Invalid anchor time: {v!r}") from e
        return v

    @field_validator("novel_name", "search_term", mode="before")
    @classmethod
    def strip_text(cls, v):
        return (v or "").strip()

    @property
    def anchor_label(self) -> str:
        return self.unlock_time.strftime("%H:%M")

    def describe(self) -> str:
        """Human-readable recurrence, e.g. 'Every 2 day(s) at 02:00'."""
        text = f"Every {self.days} day(s) at {self.anchor_label}"
        if self.skip_weekends:
            text += ", skipping weekends"
        return text

    def to_record(self) -> dict:
        """Serialize for the stored schedule list."""
        record = self.model_dump(mode="json", by_alias=True)
        record["time"] = self.anchor_label
        return record


def format_due(value: datetime) -> str:
    return value.strftime(DUE_FORMAT)


def parse_due(value: str) -> datetime:
    return datetime.strptime(value, DUE_FORMAT)
