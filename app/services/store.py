"""
StateStore: the single authority for the active identity's Snapshot.

Rules:
- Mutations apply to the in-memory snapshot synchronously, in call order,
  then schedule a debounced save. Nothing else writes snapshot fields.
- Readers get deep copies (`snapshot()`), never the live object.
- Load / save failures are recovered here and logged; they never reach the
  caller. Precondition failures raise InvalidArgumentError before anything
  changes.
- Every save is keyed by (identity key, generation). An identity change bumps
  the generation, so a save scheduled for identity A is never written once
  identity B is active.

Public API
----------
await on_identity_change(identity | None)
add_journal_entry(title, content, mood, date)        -> JournalEntry
update_task_completion(task_id, completed)           -> bool
add_task(content, completed, date)                   -> Task
add_tasks(descriptions, date)                        -> list[Task]
update_user_profile(profile)
append_message(message) / replace_messages(seq | fn)
snapshot() / subscribe(callback)
await flush() / await close()
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, Union

from app.core.config import Settings
from app.core.errors import InvalidArgumentError, StorageError
from app.core.logging import get_logger
from app.schemas.snapshot import (
    CalendarDay,
    JournalEntry,
    Message,
    Mood,
    Snapshot,
    Task,
    UserProfile,
    to_day,
)
from app.services import calendar as cal
from app.services.debounce import DebouncedSaver, SaveState
from app.services.persistence import HttpSnapshotAdapter, LocalFileAdapter, PersistenceAdapter
from app.services.sample_data import default_snapshot

logger = get_logger(__name__)

GUEST_KEY = "guest"

MessagesUpdate = Union[list[Message], Callable[[list[Message]], list[Message]]]


@dataclass(frozen=True)
class Identity:
    """An authenticated user as reported by the auth provider."""
    user_id: str
    display_name: Optional[str] = None


def _require_text(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise InvalidArgumentError(field, "must not be empty")
    return value


def _require_mood(value) -> Mood:
    if value is None:
        raise InvalidArgumentError("mood", "is required")
    try:
        return Mood(value)
    except ValueError:
        raise InvalidArgumentError("mood", f"unknown mood {value!r}") from None


def _require_date(value) -> date:
    if value is None:
        raise InvalidArgumentError("date", "is required")
    day = to_day(value)
    if isinstance(day, str):
        try:
            day = date.fromisoformat(day)
        except ValueError:
            raise InvalidArgumentError("date", f"not an ISO date: {value!r}") from None
    return day


class StateStore:
    def __init__(
        self,
        remote: PersistenceAdapter,
        local: PersistenceAdapter,
        *,
        debounce_seconds: float = 1.0,
        seed_demo_data: bool = False,
        today: Callable[[], date] = date.today,
    ):
        self._remote = remote
        self._local = local
        self._seed_demo_data = seed_demo_data
        self._today = today

        self._snapshot = Snapshot()
        self._loading = True
        self._identity: Optional[Identity] = None
        self._generation = 0
        self._closed = False
        self._listeners: list[Callable[[], None]] = []
        self._saver = DebouncedSaver(debounce_seconds, self._persist)

    @classmethod
    def from_settings(cls, config: Settings, remote: Optional[PersistenceAdapter] = None) -> "StateStore":
        """Store wired to the HTTP backend (or `remote`) and a local guest directory."""
        return cls(
            remote or HttpSnapshotAdapter.from_url(config.API_BASE_URL),
            LocalFileAdapter(config.LOCAL_STORE_DIR),
            debounce_seconds=config.SAVE_DEBOUNCE_SECONDS,
            seed_demo_data=config.seed_demo_data,
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def key(self) -> str:
        return self._identity.user_id if self._identity else GUEST_KEY

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def saver(self) -> DebouncedSaver:
        return self._saver

    def snapshot(self) -> Snapshot:
        """Point-in-time deep copy of the current state."""
        return self._snapshot.model_copy(deep=True)

    @property
    def calendar_data(self) -> list[CalendarDay]:
        return self.snapshot().calendar_data

    @property
    def messages(self) -> list[Message]:
        return self.snapshot().messages

    @property
    def user_profile(self) -> Optional[UserProfile]:
        return self.snapshot().user_profile

    def today(self) -> date:
        return self._today()

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call `callback` after every change. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("State listener %r failed", callback)

    # ------------------------------------------------------------------
    # Identity / load
    # ------------------------------------------------------------------

    def _adapter(self) -> PersistenceAdapter:
        return self._remote if self._identity else self._local

    async def on_identity_change(self, identity: Optional[Identity]) -> None:
        """
        Switch to `identity` (None = guest) and load its snapshot.

        The switch is claimed before the first await: the previous identity's
        unsaved changes are captured and written under its own key, the
        generation is bumped, and a load that finishes after a newer identity
        change is discarded.
        """
        previous_key = self.key
        previous_adapter = self._adapter()
        unsaved = self._saver.state is not SaveState.idle and not self._loading
        self._saver.cancel()
        previous = self.snapshot() if unsaved else None

        self._generation += 1
        generation = self._generation
        self._identity = identity
        self._loading = True
        self._notify()

        if previous is not None:
            await self._save(previous_adapter, previous_key, previous)
        # saves already running for the previous identity finish first
        await self._saver.flush()
        if generation != self._generation:
            logger.info("Identity changed again before %s was loaded", self.key)
            return

        key = self.key
        adapter = self._adapter()
        display_name = identity.display_name if identity else None
        created = False

        try:
            snapshot = await adapter.load(key)
        except StorageError as exc:
            logger.warning("Load failed for %s, using defaults: %s", key, exc.message)
            snapshot = self._defaults(display_name)
        except Exception:
            logger.exception("Unexpected error loading %s, using defaults", key)
            snapshot = self._defaults(display_name)
        else:
            if snapshot is None:
                logger.info("No stored snapshot for %s, creating defaults", key)
                snapshot = self._defaults(display_name)
                created = True

        if generation != self._generation:
            logger.info("Discarding stale load for %s (generation %d)", key, generation)
            return

        snapshot.calendar_data = cal.normalize_days(snapshot.calendar_data)
        self._snapshot = snapshot
        self._loading = False
        self._notify()

        if created:
            await self._persist(key, generation)

    def _defaults(self, display_name: Optional[str]) -> Snapshot:
        return default_snapshot(self._today(), display_name, seed_demo=self._seed_demo_data)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        self._notify()
        if self._loading or self._closed:
            return
        self._saver.schedule(self.key, self._generation)

    async def _persist(self, key: str, generation: int) -> None:
        """Write the current snapshot if `key`/`generation` are still active."""
        if generation != self._generation or key != self.key or self._loading:
            logger.info("Dropping stale save for %s (generation %d)", key, generation)
            return
        await self._save(self._adapter(), key, self.snapshot())

    async def _save(self, adapter: PersistenceAdapter, key: str, snapshot: Snapshot) -> None:
        try:
            await adapter.save(key, snapshot)
        except StorageError as exc:
            logger.warning("Save failed for %s, will retry on next change: %s", key, exc.message)
        except Exception:
            logger.exception("Unexpected error saving %s", key)

    async def flush(self) -> None:
        """Write any pending change now."""
        await self._saver.flush()

    async def close(self) -> None:
        """Flush, then stop scheduling saves."""
        await self._saver.flush()
        self._closed = True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_journal_entry(self, title: str, content: str, mood, day) -> JournalEntry:
        """
        Record the journal entry for `day`, replacing any earlier one.
        The day's mood always follows the journal entry.
        """
        title = _require_text("title", title)
        content = _require_text("content", content)
        mood = _require_mood(mood)
        day = _require_date(day)

        entry = JournalEntry(date=day, title=title, content=content, mood=mood)
        target = cal.get_or_create_day(self._snapshot.calendar_data, day)
        target.journal_entry = entry
        target.mood = mood
        self._changed()
        return entry

    def update_task_completion(self, task_id: str, completed: bool) -> bool:
        """Set `completed` on the task with `task_id`. Returns False if none matched."""
        task = cal.find_task(self._snapshot.calendar_data, task_id)
        if task is None:
            logger.debug("No task %s to update", task_id)
            return False
        task.completed = completed
        self._changed()
        return True

    def add_task(self, content: str, completed: bool, day) -> Task:
        return self.add_tasks([(content, completed)], day)[0]

    def add_tasks(self, descriptions: Iterable[Union[str, tuple[str, bool]]], day) -> list[Task]:
        """
        Append tasks to `day` in the given order, creating the day if needed.
        Descriptions are plain strings (not completed) or (content, completed).
        """
        day = _require_date(day)
        tasks: list[Task] = []
        for item in descriptions:
            content, completed = (item, False) if isinstance(item, str) else item
            tasks.append(Task(content=_require_text("content", content), completed=bool(completed)))
        if not tasks:
            return []

        target = cal.get_or_create_day(self._snapshot.calendar_data, day)
        target.tasks.extend(tasks)
        self._changed()
        return tasks

    def update_user_profile(self, profile: UserProfile) -> None:
        """Full replace. Use merge_profile() to change single fields."""
        self._snapshot.user_profile = profile.model_copy(deep=True)
        self._changed()

    def append_message(self, message: Message) -> None:
        self._snapshot.messages.append(message)
        self._changed()

    def replace_messages(self, update: MessagesUpdate) -> None:
        """Replace the transcript with a list, or with fn(current transcript)."""
        if callable(update):
            update = update(list(self._snapshot.messages))
        self._snapshot.messages = list(update)
        self._changed()


def merge_profile(current: Optional[UserProfile], **changes) -> UserProfile:
    """Build a full replacement profile from `current` plus field changes."""
    base = current.model_dump() if current is not None else {"name": changes.get("name", "")}
    base.update(changes)
    return UserProfile.model_validate(base)
