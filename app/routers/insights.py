"""
Insights router.

GET /api/insights?id=   : weekly task completion, mood history and recent journal titles
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.snapshot import Snapshot
from app.services.calendar import sort_days
from app.services.insights import mood_history, recent_journal_entries, weekly_completion
from app.services.persistence import read_calendar

router = APIRouter(prefix="/api/insights", tags=["insights"])


@router.get(
    "",
    summary="Progress and mood insights for an identity",
    responses={200: {"description": "Derived views; empty when nothing is stored."}},
)
def get_insights(
    user_id: str = Query(alias="id", min_length=1, description="User id, or \"guest\"."),
    db: Session = Depends(get_db),
):
    snapshot = Snapshot.model_validate({"calendarData": read_calendar(db, user_id) or []})
    sort_days(snapshot.calendar_data)

    weekly = weekly_completion(snapshot)
    return {
        "weekly_completion": {
            "days": [asdict(d) for d in weekly.days],
            "average_completion": round(weekly.average_completion, 1),
        },
        "mood_history": [
            {"date": p.date, "mood": p.mood.value, "value": p.value}
            for p in mood_history(snapshot)
        ],
        "journal": [
            {"date": e.date.isoformat(), "title": e.title, "mood": e.mood.value}
            for e in recent_journal_entries(snapshot)
        ],
    }
