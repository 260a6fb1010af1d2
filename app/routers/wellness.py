"""
Wellness flows router.

POST /api/mood-assessment  : onboarding answers → emotional state summary
POST /api/activity-feed    : profile, day and history → one suggestion
"""
from fastapi import APIRouter, Depends

from app.core.logging import get_logger
from app.routers.coach import get_coach
from app.schemas.coach import (
    ActivityFeedRequest,
    ActivityFeedResponse,
    MoodAssessmentRequest,
    MoodAssessmentResponse,
)
from app.services.coach import CoachAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["wellness"])

_COACH_ERRORS = {
    422: {"description": "Validation error."},
    502: {"description": "The coach model could not be reached (`COACH_UNAVAILABLE`)."},
}


@router.post(
    "/mood-assessment",
    response_model=MoodAssessmentResponse,
    summary="Summarize onboarding answers",
    responses=_COACH_ERRORS,
)
async def post_mood_assessment(payload: MoodAssessmentRequest, coach: CoachAdapter = Depends(get_coach)):
    logger.info("Mood assessment requested")
    return await coach.assess_mood(payload)


@router.post(
    "/activity-feed",
    response_model=ActivityFeedResponse,
    summary="Personalised activity suggestion",
    responses=_COACH_ERRORS,
)
async def post_activity_feed(payload: ActivityFeedRequest, coach: CoachAdapter = Depends(get_coach)):
    """
    `userProfile`, `dayData` and `recentActivityHistory` are JSON strings
    built by the client from its calendar.
    """
    logger.info("Activity feed suggestion for %s", payload.user_id)
    return await coach.activity_feed(payload)
