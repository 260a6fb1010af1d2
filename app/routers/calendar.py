"""
Calendar router.

GET  /api/calendar?id=   : stored calendar for one identity (null when none)
POST /api/calendar       : replace the stored calendar
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.api import CalendarUpdate
from app.services.persistence import read_calendar, write_calendar

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get(
    "",
    summary="Stored calendar for an identity",
    responses={200: {"description": "JSON array of calendar days, or null if nothing is stored."}},
)
def get_calendar(
    user_id: str = Query(alias="id", min_length=1, description="User id, or \"guest\"."),
    db: Session = Depends(get_db),
) -> Optional[list]:
    return read_calendar(db, user_id)


@router.post(
    "",
    summary="Replace the stored calendar",
    responses={
        200: {"description": "Calendar stored."},
        422: {"description": "Validation error."},
    },
)
def post_calendar(payload: CalendarUpdate, db: Session = Depends(get_db)):
    """Upsert: the whole calendar for `userId` is replaced."""
    wire = payload.to_wire()
    write_calendar(db, payload.user_id, wire["calendarData"])
    db.commit()
    return {"status": "updated", "days": len(payload.calendar_data)}
