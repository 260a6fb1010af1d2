"""
Insights: read-only views derived from a Snapshot.

Pure functions, no I/O. Inputs are assumed sorted newest first (the store
guarantees it); outputs that feed charts are returned oldest first.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.schemas.snapshot import CalendarDay, JournalEntry, Mood, Snapshot

WEEK_DAYS = 7
MOOD_HISTORY_LIMIT = 30
JOURNAL_LIMIT = 10


@dataclass
class DayCompletion:
    date: str
    tasks_total: int
    tasks_completed: int
    completion_rate: float  # 0..100


@dataclass
class WeeklyCompletion:
    days: list[DayCompletion]
    average_completion: float


@dataclass
class MoodPoint:
    date: str
    mood: Mood
    value: int


def _completion(day: CalendarDay) -> DayCompletion:
    total = len(day.tasks)
    done = sum(1 for t in day.tasks if t.completed)
    return DayCompletion(
        date=day.date.isoformat(),
        tasks_total=total,
        tasks_completed=done,
        completion_rate=(done / total) * 100 if total else 0.0,
    )


def weekly_completion(snapshot: Snapshot, days: int = WEEK_DAYS) -> WeeklyCompletion:
    """
    Task completion for the most recent `days` calendar entries, oldest first.
    Days without tasks count as 0% in the average.
    """
    rows = [_completion(d) for d in snapshot.calendar_data[:days]]
    rows.reverse()
    average = sum(r.completion_rate for r in rows) / (len(rows) or 1)
    return WeeklyCompletion(days=rows, average_completion=average)


def mood_history(snapshot: Snapshot, limit: int = MOOD_HISTORY_LIMIT) -> list[MoodPoint]:
    """Most recent `limit` days with a mood, oldest first, scored 1 (awful) .. 5 (great)."""
    points = [
        MoodPoint(date=d.date.isoformat(), mood=d.mood, value=d.mood.score)
        for d in snapshot.calendar_data
        if d.mood is not None
    ][:limit]
    points.reverse()
    return points


def recent_journal_entries(snapshot: Snapshot, limit: int = JOURNAL_LIMIT) -> list[JournalEntry]:
    """Newest first."""
    days = sorted(
        (d for d in snapshot.calendar_data if d.journal_entry is not None),
        key=lambda d: d.date,
        reverse=True,
    )
    return [d.journal_entry for d in days[:limit]]
