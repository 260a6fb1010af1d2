"""
Request bodies for the persistence API.

POST /api/calendar      → CalendarUpdate
POST /api/messages      → MessagesUpdate
POST /api/user-profile  → UserProfileUpdate
"""
from typing import Optional

from pydantic import Field

from app.schemas.snapshot import CalendarDay, Message, UserProfile, WireModel


class CalendarUpdate(WireModel):
    user_id: str = Field(min_length=1)
    calendar_data: list[CalendarDay]


class MessagesUpdate(WireModel):
    user_id: str = Field(min_length=1)
    messages: list[Message]


class UserProfileUpdate(UserProfile):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    pronouns: Optional[str] = None
