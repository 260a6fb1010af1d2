from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    HugfeedError,
    hugfeed_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.logging import get_logger, setup_logging
from app.db.base import get_db
from app.routers import calendar, coach, insights, messages, user_profile, wellness

setup_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(
        "Hugfeed API starting (env=%s, coach model=%s, task mode=%s)",
        settings.APP_ENV, settings.COACH_MODEL, settings.COACH_TASK_MODE,
    )
    yield
    # only close a coach client that was actually created
    if coach.get_coach.cache_info().currsize:
        await coach.get_coach().aclose()
    logger.info("Hugfeed API stopped")


app = FastAPI(
    title="Hugfeed API",
    description=(
        "**Wellness journal backend**\n\n"
        "Stores one calendar, chat transcript and profile per identity "
        "(user id or `guest`) and runs the AI coach flow.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# most specific first
app.add_exception_handler(HugfeedError, hugfeed_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

for module in (calendar, messages, user_profile, coach, wellness, insights):
    app.include_router(module.router)


@app.get("/health", tags=["health"], summary="Liveness and database check")
def health(db: Session = Depends(get_db)):
    """
    `{"status": "ok", "db": "ok", "coach": ...}` while the database answers,
    HTTP 503 otherwise. `coach` is "configured" once an API key is set.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        return JSONResponse(status_code=503, content={"status": "error", "db": "unreachable"})

    return {
        "status": "ok",
        "db": "ok",
        "coach": "configured" if settings.COACH_API_KEY else "missing",
        "env": settings.APP_ENV,
    }
