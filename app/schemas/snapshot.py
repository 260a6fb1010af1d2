"""
Snapshot data model: everything one identity owns (calendar, chat, profile).

Wire format uses camelCase aliases (`calendarData`, `journalEntry`,
`preferredActivities`) so stored JSON stays compatible with the web client.
Python code uses the snake_case attribute names.
"""
from __future__ import annotations

import enum
import uuid
from datetime import date as date_type, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Mood(str, enum.Enum):
    awful = "awful"
    bad = "bad"
    ok = "ok"
    good = "good"
    great = "great"

    @property
    def score(self) -> int:
        """1 (awful) .. 5 (great)."""
        return list(Mood).index(self) + 1


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def to_day(value):
    """
    Coerce a serialized date to day precision.

    Accepts `date`, `datetime`, "YYYY-MM-DD" or a full ISO timestamp. Timestamps
    keep the calendar date they were written with; no timezone conversion, so
    a stored day never moves across midnight.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
        return value[:10]
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Task(WireModel):
    id: str = Field(default_factory=lambda: new_id("task"))
    content: str = Field(min_length=1)
    completed: bool = False


class JournalEntry(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: new_id("journal"))
    date: date_type
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    mood: Mood

    @field_validator("date", mode="before")
    @classmethod
    def day_precision(cls, value):
        return to_day(value)


class CalendarDay(WireModel):
    date: date_type
    mood: Optional[Mood] = None
    journal_entry: Optional[JournalEntry] = None
    tasks: list[Task] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def day_precision(cls, value):
        return to_day(value)


class UserProfile(WireModel):
    name: str
    pronouns: Optional[str] = None
    goals: list[str] = Field(default_factory=list)
    preferred_activities: list[str] = Field(default_factory=list)

    @field_validator("goals", "preferred_activities", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return [] if value is None else value


class Message(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: new_id("msg"))
    role: Literal["user", "assistant"]
    content: str
    image: Optional[str] = Field(default=None, description="data:<mime>;base64,<payload>")
    suggestions: Optional[list[str]] = None


class Snapshot(WireModel):
    calendar_data: list[CalendarDay] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    user_profile: Optional[UserProfile] = None
