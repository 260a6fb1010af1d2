from datetime import date, timedelta

from app.schemas.snapshot import CalendarDay, JournalEntry, Mood, Snapshot, Task
from app.services.insights import mood_history, recent_journal_entries, weekly_completion
from app.services.sample_data import demo_calendar

TODAY = date(2024, 6, 3)


def _day(offset: int, done: int = 0, open_: int = 0, mood: Mood | None = None) -> CalendarDay:
    current = TODAY - timedelta(days=offset)
    tasks = [Task(content=f"done {i}", completed=True) for i in range(done)]
    tasks += [Task(content=f"open {i}", completed=False) for i in range(open_)]
    entry = None
    if mood is not None:
        entry = JournalEntry(date=current, title=f"Day {offset}", content="...", mood=mood)
    return CalendarDay(date=current, mood=mood, journal_entry=entry, tasks=tasks)


def test_weekly_completion_oldest_first():
    snapshot = Snapshot(calendar_data=[_day(0, done=1, open_=1), _day(1, done=2), _day(2)])
    weekly = weekly_completion(snapshot)
    assert [d.date for d in weekly.days] == ["2024-06-01", "2024-06-02", "2024-06-03"]
    assert [d.completion_rate for d in weekly.days] == [0.0, 100.0, 50.0]
    assert weekly.average_completion == 50.0


def test_weekly_completion_only_last_seven_days():
    snapshot = Snapshot(calendar_data=demo_calendar(TODAY))
    weekly = weekly_completion(snapshot)
    assert len(weekly.days) == 7
    assert weekly.days[-1].date == TODAY.isoformat()
    assert weekly.days[-1].tasks_total == 3
    assert weekly.days[-1].tasks_completed == 1


def test_weekly_completion_empty():
    weekly = weekly_completion(Snapshot())
    assert weekly.days == []
    assert weekly.average_completion == 0.0


def test_mood_history_skips_days_without_mood():
    snapshot = Snapshot(calendar_data=[
        _day(0, mood=Mood.great),
        _day(1),
        _day(2, mood=Mood.awful),
    ])
    points = mood_history(snapshot)
    assert [(p.date, p.value) for p in points] == [("2024-06-01", 1), ("2024-06-03", 5)]


def test_mood_history_limit_keeps_most_recent():
    snapshot = Snapshot(calendar_data=[_day(i, mood=Mood.ok) for i in range(40)])
    points = mood_history(snapshot, limit=30)
    assert len(points) == 30
    assert points[-1].date == TODAY.isoformat()


def test_recent_journal_entries_newest_first():
    snapshot = Snapshot(calendar_data=demo_calendar(TODAY))
    entries = recent_journal_entries(snapshot)
    assert [e.title for e in entries] == [
        "A productive day",
        "Feeling overwhelmed",
        "Wonderful evening with friends",
    ]
    assert recent_journal_entries(snapshot, limit=1)[0].date == TODAY - timedelta(days=1)
