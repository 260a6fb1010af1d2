"""
Default snapshot construction.

Used whenever an identity has no stored snapshot (first login, new guest,
failed load). Demo calendar data is only generated when `seed_demo` is set.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from app.schemas.snapshot import (
    CalendarDay,
    JournalEntry,
    Message,
    Mood,
    Snapshot,
    Task,
    UserProfile,
)

PLACEHOLDER_NAME = "Friend"
DEMO_DAYS = 30

WELCOME_MESSAGE = (
    "Hello! I'm your AI wellness coach. How are you feeling today? "
    "Feel free to share what's on your mind, or upload an image that "
    "represents your current state."
)

# (days ago, mood, title, content)
_DEMO_JOURNAL = [
    (1, Mood.good, "A productive day",
     "Felt really focused today and managed to get a lot done. The new morning "
     "ritual seems to be working wonders. I feel optimistic about the week ahead."),
    (3, Mood.bad, "Feeling overwhelmed",
     "Work has been piling up and I feel like I'm drowning. It's hard to stay "
     "positive when there's so much to do. I need to find a way to de-stress."),
    (5, Mood.great, "Wonderful evening with friends",
     "Had a great time catching up with old friends. It was so refreshing to "
     "laugh and just be in the moment. Exactly what I needed."),
]

_STARTER_TASKS = [
    ("Morning meditation ritual", True),
    ("Journal about today's feelings", False),
    ("Go for a 30-minute walk", False),
]

_RECURRING_TASKS = [
    ("Reflect on gratitude", True),
    ("Plan tomorrow's priorities", True),
]


def welcome_message() -> Message:
    return Message(role="assistant", content=WELCOME_MESSAGE)


def default_profile(display_name: Optional[str] = None) -> UserProfile:
    return UserProfile(name=display_name or PLACEHOLDER_NAME)


def demo_calendar(today: date) -> list[CalendarDay]:
    """30 days back from `today`, newest first."""
    journal = {
        today - timedelta(days=ago): (mood, title, content)
        for ago, mood, title, content in _DEMO_JOURNAL
    }
    days: list[CalendarDay] = []
    for i in range(DEMO_DAYS):
        current = today - timedelta(days=i)
        if i == 0:
            tasks = [Task(content=c, completed=done) for c, done in _STARTER_TASKS]
        elif i % 3 == 0:
            tasks = [Task(content=c, completed=done) for c, done in _RECURRING_TASKS]
        else:
            tasks = []

        entry = None
        if current in journal:
            mood, title, content = journal[current]
            entry = JournalEntry(date=current, title=title, content=content, mood=mood)

        days.append(CalendarDay(
            date=current,
            mood=entry.mood if entry else None,
            journal_entry=entry,
            tasks=tasks,
        ))
    return days


def default_snapshot(
    today: date,
    display_name: Optional[str] = None,
    seed_demo: bool = False,
) -> Snapshot:
    return Snapshot(
        calendar_data=demo_calendar(today) if seed_demo else [],
        messages=[welcome_message()],
        user_profile=default_profile(display_name),
    )
