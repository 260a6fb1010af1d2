"""
Messages router.

GET  /api/messages?id=   : stored chat transcript (null when none)
POST /api/messages       : replace the stored transcript
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.api import MessagesUpdate
from app.services.persistence import read_messages, write_messages

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get(
    "",
    summary="Stored chat transcript for an identity",
    responses={200: {"description": "JSON array of messages, or null if nothing is stored."}},
)
def get_messages(
    user_id: str = Query(alias="id", min_length=1, description="User id, or \"guest\"."),
    db: Session = Depends(get_db),
) -> Optional[list]:
    return read_messages(db, user_id)


@router.post(
    "",
    summary="Replace the stored chat transcript",
    responses={
        200: {"description": "Transcript stored."},
        422: {"description": "Validation error."},
    },
)
def post_messages(payload: MessagesUpdate, db: Session = Depends(get_db)):
    wire = payload.to_wire()
    write_messages(db, payload.user_id, wire["messages"])
    db.commit()
    return {"status": "updated", "messages": len(payload.messages)}
