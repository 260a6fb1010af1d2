"""
User profile router.

GET  /api/user-profile?id=   : stored profile (null when none)
POST /api/user-profile       : create or fully replace a profile
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.api import UserProfileUpdate
from app.services.persistence import read_profile, write_profile

router = APIRouter(prefix="/api/user-profile", tags=["user-profile"])


@router.get(
    "",
    summary="Stored profile for an identity",
    responses={200: {"description": "Profile with goals and preferred activities, or null."}},
)
def get_user_profile(
    user_id: str = Query(alias="id", min_length=1, description="User id, or \"guest\"."),
    db: Session = Depends(get_db),
) -> Optional[dict]:
    return read_profile(db, user_id)


@router.post(
    "",
    summary="Create or replace a profile",
    responses={
        200: {"description": "Profile stored."},
        422: {"description": "Missing id or name."},
    },
)
def post_user_profile(payload: UserProfileUpdate, db: Session = Depends(get_db)):
    """
    Full replace. Omitted `goals` / `preferredActivities` are stored as empty
    lists; callers merge with the current profile first.
    """
    write_profile(db, payload.id, payload)
    db.commit()
    return {"status": "updated", "id": payload.id}
