"""
Coach call contract.

POST /api/coach            → CoachRequest → CoachResponse
POST /api/mood-assessment  → MoodAssessmentRequest → MoodAssessmentResponse
POST /api/activity-feed    → ActivityFeedRequest → ActivityFeedResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContextDay(_Wire):
    """One line of the bounded calendar summary sent to the coach."""
    date: str = Field(description="ISO date (YYYY-MM-DD).")
    mood: Optional[str] = None
    journal_title: Optional[str] = None


class CoachRequest(_Wire):
    user_id: str = Field(description='Authenticated user id or "guest".')
    user_name: str
    user_message: str
    preferred_activities: list[str] = Field(default_factory=list)
    calendar_context: Optional[str] = Field(
        default=None,
        description="JSON array of {date, mood, journalTitle} for at most 7 recent days.",
    )
    image: Optional[str] = Field(
        default=None,
        description="Optional data URI: data:<mimetype>;base64,<encoded_data>.",
    )


class TaskToAdd(_Wire):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1)
    completed: bool = False


class CoachResponse(_Wire):
    response: str
    tasks_to_add: list[TaskToAdd] = Field(default_factory=list)


class MoodAssessmentRequest(_Wire):
    """Onboarding questionnaire answers, free text."""
    goals: str
    causes: str
    feelings: str
    sleep: str
    happiness: str


class MoodAssessmentResponse(_Wire):
    summary: str = Field(min_length=1, description="Short summary of the user's emotional state.")


class ActivityFeedRequest(_Wire):
    user_id: str
    user_profile: str = Field(description="JSON: name, goals and preferred activities.")
    day_data: str = Field(description="JSON: the selected day's tasks and journal entry.")
    recent_activity_history: str = Field(
        description="JSON: completed and open tasks per recent day, newest first.",
    )


class ActivityFeedResponse(_Wire):
    suggestion: str = Field(min_length=1)
