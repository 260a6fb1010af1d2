"""
Coach router.

POST /api/coach   : one coach turn: CoachRequest → CoachResponse
"""
from functools import lru_cache

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.coach import CoachRequest, CoachResponse
from app.services.coach import CoachAdapter, OpenAICoachAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/api/coach", tags=["coach"])


@lru_cache
def get_coach() -> CoachAdapter:
    return OpenAICoachAdapter.from_settings(settings)


@router.post(
    "",
    response_model=CoachResponse,
    response_model_by_alias=True,
    summary="Ask the wellness coach",
    responses={
        200: {"description": "Coach reply, with tasks to add when the user asked for a plan."},
        422: {"description": "Validation error."},
        502: {"description": "The coach model could not be reached (`COACH_UNAVAILABLE`)."},
    },
)
async def post_coach(payload: CoachRequest, coach: CoachAdapter = Depends(get_coach)):
    """
    Single attempt, no retries. `calendarContext` should be the bounded
    summary built by the client (at most 7 days of date, mood and journal title).
    """
    logger.info(
        "Coach turn for %s (image=%s, context=%s)",
        payload.user_id, bool(payload.image), bool(payload.calendar_context),
    )
    return await coach.converse(payload)
