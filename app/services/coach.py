"""
Coach service: the LLM coach adapters and the chat round trip.

Adapters implement three coroutines and raise RemoteError on any failure:

    converse(CoachRequest) -> CoachResponse
    assess_mood(MoodAssessmentRequest) -> MoodAssessmentResponse
    activity_feed(ActivityFeedRequest) -> ActivityFeedResponse

OpenAICoachAdapter  calls the model directly (server side, behind /api/*)
HttpCoachAdapter    calls this service's /api/* endpoints (client side)

There is exactly one attempt per user message; retrying is the user's
"send again".

CoachSession.send() is the round trip used by the chat views:
user message appended first, coach called with a bounded calendar summary,
tasks either added ("auto") or offered as suggestions ("suggest"), and a fixed
fallback reply on failure. assess_mood() and activity_suggestion() return
None instead of a fallback.
"""
from __future__ import annotations

import enum
import json
from datetime import date
from typing import Optional, Protocol, TypeVar

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import Settings
from app.core.errors import InvalidArgumentError, RemoteError
from app.core.logging import get_logger
from app.schemas.coach import (
    ActivityFeedRequest,
    ActivityFeedResponse,
    CoachRequest,
    CoachResponse,
    MoodAssessmentRequest,
    MoodAssessmentResponse,
)
from app.schemas.snapshot import Message, Task
from app.services import calendar as cal
from app.services.store import StateStore

logger = get_logger(__name__)

FALLBACK_REPLY = "I'm having trouble connecting right now. Please try again."
IMAGE_ONLY_QUERY = "Here is an image, what do you think?"
IMAGE_ONLY_CONTENT = "I uploaded an image."
GUEST_USER_ID = "guest"
ANONYMOUS_NAME = "there"

ReplyT = TypeVar("ReplyT", bound=BaseModel)


class CoachAdapter(Protocol):
    async def converse(self, request: CoachRequest) -> CoachResponse: ...

    async def assess_mood(self, request: MoodAssessmentRequest) -> MoodAssessmentResponse: ...

    async def activity_feed(self, request: ActivityFeedRequest) -> ActivityFeedResponse: ...


class TaskMode(str, enum.Enum):
    auto = "auto"
    suggest = "suggest"


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are a friendly and proactive AI emotional wellness coach in an app called Hugfeed.
The user's name is {user_name}.
The user's preferred wellness activities are: {activities}.

Recent calendar (date, mood, journal title), newest first:
{calendar}

Your jobs:
1. Be a conversational partner. If the user is just chatting, answer in a supportive, brief way.
2. Be a task planner. If the user asks you to plan something, break it into small, specific tasks.
   For every 2-3 tasks, add a short wellness break taken from the preferred activities, or a generic
   one such as "Take a 5-minute stretch break" when none are given.
3. Use the calendar to personalise your answer. If an image is attached, relate it to the user's message.

Reply with a JSON object only:
{{"response": "<your message to the user>", "tasksToAdd": [{{"content": "<task>", "completed": false}}]}}
Use an empty "tasksToAdd" list when there is nothing to plan."""


def build_messages(request: CoachRequest) -> list[dict]:
    system = SYSTEM_PROMPT.format(
        user_name=request.user_name,
        activities=", ".join(request.preferred_activities) or "not specified",
        calendar=request.calendar_context or "[]",
    )
    if request.image:
        user_content = [
            {"type": "text", "text": request.user_message},
            {"type": "image_url", "image_url": {"url": request.image}},
        ]
    else:
        user_content = request.user_message
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user_content},
    ]


MOOD_ASSESSMENT_PROMPT = """You analyze a short wellness questionnaire and summarize the user's current emotional state.

Goals: {goals}
Causes affecting mood: {causes}
Feelings: {feelings}
Sleep: {sleep}
Happiness: {happiness}

Reply with a JSON object only: {{"summary": "<two or three supportive sentences>"}}"""

ACTIVITY_FEED_PROMPT = """You are an AI emotional wellness coach writing one short, encouraging suggestion
for the user's daily activity feed. Adapt to what sticks for this user.

User profile (goals and preferred activities):
{profile}

Selected day (tasks, journal):
{day}

Recent activity history (completed and open tasks per day):
{history}

- If the user keeps completing a kind of activity, encourage them to continue.
- If they keep missing something, suggest a smaller, easier alternative
  (a missed "30-minute walk" becomes a "5-minute stretch break").
- If the day is full of tasks, suggest one of the preferred wellness breaks.
- If the journal entry shows stress, suggest a relevant preferred activity.

Reply with a JSON object only: {{"suggestion": "<one sentence>"}}"""


def mood_assessment_messages(request: MoodAssessmentRequest) -> list[dict]:
    return [{"role": "user", "content": MOOD_ASSESSMENT_PROMPT.format(**request.model_dump())}]


def activity_feed_messages(request: ActivityFeedRequest) -> list[dict]:
    prompt = ACTIVITY_FEED_PROMPT.format(
        profile=request.user_profile,
        day=request.day_data,
        history=request.recent_activity_history,
    )
    return [{"role": "user", "content": prompt}]


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

class OpenAICoachAdapter:
    def __init__(self, client: AsyncOpenAI, model: str):
        self._client = client
        self._model = model

    @classmethod
    def from_settings(cls, config: Settings) -> "OpenAICoachAdapter":
        client = AsyncOpenAI(
            api_key=config.COACH_API_KEY or None,
            base_url=config.COACH_BASE_URL,
            timeout=config.COACH_TIMEOUT_SECONDS,
            max_retries=0,
        )
        return cls(client, config.COACH_MODEL)

    async def aclose(self) -> None:
        await self._client.close()

    async def _complete(self, messages: list[dict], schema: type[ReplyT]) -> ReplyT:
        """One JSON-object completion, validated against `schema`."""
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=0.7,
            )
        except openai.OpenAIError as exc:
            raise RemoteError(f"Coach model call failed: {exc}") from exc

        raw = completion.choices[0].message.content if completion.choices else None
        if not raw:
            raise RemoteError("Coach model returned an empty reply.")
        try:
            return schema.model_validate_json(raw)
        except ValidationError as exc:
            raise RemoteError(
                f"Coach model reply did not match {schema.__name__}.",
                details={"errors": exc.error_count()},
            ) from exc

    async def converse(self, request: CoachRequest) -> CoachResponse:
        return await self._complete(build_messages(request), CoachResponse)

    async def assess_mood(self, request: MoodAssessmentRequest) -> MoodAssessmentResponse:
        return await self._complete(mood_assessment_messages(request), MoodAssessmentResponse)

    async def activity_feed(self, request: ActivityFeedRequest) -> ActivityFeedResponse:
        return await self._complete(activity_feed_messages(request), ActivityFeedResponse)


class HttpCoachAdapter:
    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 30.0) -> "HttpCoachAdapter":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, request: BaseModel, schema: type[ReplyT]) -> ReplyT:
        try:
            response = await self._client.post(
                path,
                json=request.model_dump(by_alias=True, exclude_none=True),
            )
            response.raise_for_status()
            return schema.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteError(f"Coach endpoint {path} failed: {exc}") from exc

    async def converse(self, request: CoachRequest) -> CoachResponse:
        return await self._post("/api/coach", request, CoachResponse)

    async def assess_mood(self, request: MoodAssessmentRequest) -> MoodAssessmentResponse:
        return await self._post("/api/mood-assessment", request, MoodAssessmentResponse)

    async def activity_feed(self, request: ActivityFeedRequest) -> ActivityFeedResponse:
        return await self._post("/api/activity-feed", request, ActivityFeedResponse)


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------

class CoachSession:
    """Chat with the coach on behalf of the store's active identity."""

    def __init__(self, store: StateStore, coach: CoachAdapter, task_mode: TaskMode = TaskMode.auto):
        self._store = store
        self._coach = coach
        self._task_mode = TaskMode(task_mode)

    @classmethod
    def from_settings(cls, store: StateStore, config: Settings) -> "CoachSession":
        coach = HttpCoachAdapter.from_url(config.API_BASE_URL, timeout=config.COACH_TIMEOUT_SECONDS)
        return cls(store, coach, TaskMode(config.COACH_TASK_MODE))

    @property
    def task_mode(self) -> TaskMode:
        return self._task_mode

    def build_request(self, text: str, image: Optional[str] = None) -> CoachRequest:
        snapshot = self._store.snapshot()
        identity = self._store.identity
        profile = snapshot.user_profile
        return CoachRequest(
            user_id=identity.user_id if identity else GUEST_USER_ID,
            user_name=profile.name if profile and profile.name else ANONYMOUS_NAME,
            user_message=text,
            preferred_activities=list(profile.preferred_activities) if profile else [],
            calendar_context=cal.context_json(snapshot.calendar_data),
            image=image,
        )

    async def send(
        self,
        text: str,
        image: Optional[str] = None,
        target_date: Optional[date] = None,
    ) -> Optional[Message]:
        """
        Run one coach round trip. Returns the assistant message appended to
        the transcript, or None when there was nothing to send or the identity
        changed while the coach was answering.
        """
        text = (text or "").strip()
        if not text and not image:
            return None

        self._store.append_message(
            Message(role="user", content=text or IMAGE_ONLY_CONTENT, image=image)
        )
        request = self.build_request(text or IMAGE_ONLY_QUERY, image)
        generation = self._store.generation

        try:
            result = await self._coach.converse(request)
        except RemoteError as exc:
            logger.warning("Coach unavailable for %s: %s", request.user_id, exc.message)
            result = None
        except Exception:
            logger.exception("Coach call failed for %s", request.user_id)
            result = None

        if generation != self._store.generation:
            logger.info("Identity changed during coach call, dropping reply for %s", request.user_id)
            return None

        if result is None:
            reply = Message(role="assistant", content=FALLBACK_REPLY)
            self._store.append_message(reply)
            return reply

        tasks = [
            (t.content.strip(), t.completed)
            for t in result.tasks_to_add
            if t.content and t.content.strip()
        ]
        if len(tasks) < len(result.tasks_to_add):
            logger.warning(
                "Coach proposed %d blank task(s) for %s, skipped",
                len(result.tasks_to_add) - len(tasks), request.user_id,
            )
        suggestions = None
        if tasks and self._task_mode is TaskMode.auto:
            day = target_date or self._store.today()
            try:
                self._store.add_tasks(tasks, day)
            except InvalidArgumentError as exc:
                logger.warning("Coach tasks rejected for %s: %s", request.user_id, exc.message)
                reply = Message(role="assistant", content=FALLBACK_REPLY)
                self._store.append_message(reply)
                return reply
            logger.info("Coach added %d task(s) for %s on %s", len(tasks), request.user_id, day)
        elif tasks:
            suggestions = [content for content, _ in tasks]

        reply = Message(role="assistant", content=result.response, suggestions=suggestions)
        self._store.append_message(reply)
        return reply

    def accept_suggestion(self, content: str, target_date: Optional[date] = None) -> Task:
        """Add one suggested task (the user clicked it)."""
        return self._store.add_task(content, False, target_date or self._store.today())

    async def assess_mood(self, answers: MoodAssessmentRequest) -> Optional[str]:
        """Summarize onboarding answers. None when the coach is unavailable."""
        try:
            result = await self._coach.assess_mood(answers)
        except RemoteError as exc:
            logger.warning("Mood assessment unavailable: %s", exc.message)
            return None
        return result.summary

    def build_activity_request(self, day: Optional[date] = None) -> ActivityFeedRequest:
        snapshot = self._store.snapshot()
        identity = self._store.identity
        profile = snapshot.user_profile
        user_profile = {
            "name": profile.name if profile else None,
            "goals": list(profile.goals) if profile else [],
            "preferredActivities": list(profile.preferred_activities) if profile else [],
        }
        return ActivityFeedRequest(
            user_id=identity.user_id if identity else GUEST_USER_ID,
            user_profile=json.dumps(user_profile, ensure_ascii=False),
            day_data=cal.day_json(snapshot.calendar_data, day or self._store.today()),
            recent_activity_history=cal.activity_history_json(snapshot.calendar_data),
        )

    async def activity_suggestion(self, day: Optional[date] = None) -> Optional[str]:
        """
        One personalised suggestion for the activity feed. None when the
        coach is unavailable or the identity changed while it was answering.
        """
        request = self.build_activity_request(day)
        generation = self._store.generation
        try:
            result = await self._coach.activity_feed(request)
        except RemoteError as exc:
            logger.warning("Activity feed unavailable for %s: %s", request.user_id, exc.message)
            return None
        if generation != self._store.generation:
            logger.info("Identity changed during activity feed call, dropping it for %s", request.user_id)
            return None
        return result.suggestion
