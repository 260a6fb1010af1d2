"""
Calendar helpers: pure functions over a calendar sequence.

Invariants kept by every helper that inserts:
- one CalendarDay per calendar date
- sequence sorted by date, newest first
"""
from __future__ import annotations

import json
from datetime import date
from typing import Optional

from app.schemas.coach import ContextDay
from app.schemas.snapshot import CalendarDay, to_day

CONTEXT_DAYS = 7


def find_day(days: list[CalendarDay], target: date) -> Optional[CalendarDay]:
    target = to_day(target)
    for day in days:
        if day.date == target:
            return day
    return None


def sort_days(days: list[CalendarDay]) -> None:
    """Sort in place, newest first."""
    days.sort(key=lambda d: d.date, reverse=True)


def get_or_create_day(days: list[CalendarDay], target: date) -> CalendarDay:
    """
    Return the day for `target`, inserting an empty one when missing.
    The sequence is re-sorted after an insert.
    """
    existing = find_day(days, target)
    if existing is not None:
        return existing
    day = CalendarDay(date=to_day(target))
    days.append(day)
    sort_days(days)
    return day


def find_task(days: list[CalendarDay], task_id: str):
    for day in days:
        for task in day.tasks:
            if task.id == task_id:
                return task
    return None


def context_summary(days: list[CalendarDay], limit: int = CONTEXT_DAYS) -> list[ContextDay]:
    """
    Project the most recent days to {date, mood, journalTitle}.
    Journal bodies and task lists never leave the store.
    """
    return [
        ContextDay(
            date=day.date.isoformat(),
            mood=day.mood.value if day.mood else None,
            journal_title=day.journal_entry.title if day.journal_entry else None,
        )
        for day in days[:limit]
    ]


def context_json(days: list[CalendarDay], limit: int = CONTEXT_DAYS) -> str:
    return json.dumps(
        [c.model_dump(by_alias=True) for c in context_summary(days, limit)],
        ensure_ascii=False,
    )


def day_json(days: list[CalendarDay], target: date) -> str:
    """Tasks and journal entry of one day, for the activity feed prompt."""
    day = find_day(days, target)
    if day is None:
        return json.dumps({"date": to_day(target).isoformat(), "tasks": [], "journalEntry": None})
    entry = day.journal_entry
    return json.dumps(
        {
            "date": day.date.isoformat(),
            "mood": day.mood.value if day.mood else None,
            "tasks": [{"content": t.content, "completed": t.completed} for t in day.tasks],
            "journalEntry": (
                {"title": entry.title, "content": entry.content, "mood": entry.mood.value}
                if entry else None
            ),
        },
        ensure_ascii=False,
    )


def activity_history_json(days: list[CalendarDay], limit: int = CONTEXT_DAYS) -> str:
    """Completed / open task contents for the most recent days with tasks."""
    history = [
        {
            "date": day.date.isoformat(),
            "completed": [t.content for t in day.tasks if t.completed],
            "open": [t.content for t in day.tasks if not t.completed],
        }
        for day in days
        if day.tasks
    ][:limit]
    return json.dumps(history, ensure_ascii=False)


def normalize_days(days: list[CalendarDay]) -> list[CalendarDay]:
    """
    Restore the calendar invariants on data read from storage: one day per
    date (tasks concatenated, the later journal entry wins), mood taken from
    the journal entry, newest first.
    """
    merged: dict[date, CalendarDay] = {}
    for day in days:
        existing = merged.get(day.date)
        if existing is None:
            merged[day.date] = day
            continue
        existing.tasks.extend(day.tasks)
        if day.journal_entry is not None:
            existing.journal_entry = day.journal_entry
        elif existing.journal_entry is None and day.mood is not None:
            existing.mood = day.mood
    result = list(merged.values())
    for day in result:
        if day.journal_entry is not None:
            day.mood = day.journal_entry.mood
    sort_days(result)
    return result
