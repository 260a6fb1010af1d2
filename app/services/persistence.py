"""
Persistence adapters.

Every backend exposes the same two coroutines, addressed by a single identity
key (user id, or "guest" for local-only storage):

    load(key)            -> Snapshot | None
    save(key, snapshot)  -> None

Both raise StorageError on connectivity / parse problems. Callers decide how
to recover (see app.services.store).

Backends
--------
SqlSnapshotAdapter   relational key-value tables (calendar, messages, user_profile)
HttpSnapshotAdapter  the same tables reached through /api/* of this service
LocalFileAdapter     one JSON file per key on local disk (guests)

The module-level read_* / write_* functions are the relational CRUD shared by
SqlSnapshotAdapter and the /api routers. They flush only; the root function
commits.
"""
from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import httpx
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StorageError
from app.core.logging import get_logger
from app.db.base import SessionLocal
from app.models.calendar import CalendarRecord
from app.models.message_log import MessageLog
from app.models.user_profile import UserProfileRecord
from app.schemas.snapshot import Snapshot, UserProfile

logger = get_logger(__name__)


class PersistenceAdapter(Protocol):
    async def load(self, key: str) -> Optional[Snapshot]: ...

    async def save(self, key: str, snapshot: Snapshot) -> None: ...


# ---------------------------------------------------------------------------
# Tiny utilities
# ---------------------------------------------------------------------------

def _jdump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _jload(text: Optional[str]) -> list:
    if not text:
        return []
    try:
        result = json.loads(text)
        return result if isinstance(result, list) else []
    except (ValueError, TypeError):
        return []


def _assemble(
    key: str,
    calendar: Optional[list],
    messages: Optional[list],
    profile: Optional[dict],
) -> Optional[Snapshot]:
    """Build a Snapshot from stored parts. None when nothing is stored for `key`."""
    if calendar is None and messages is None and profile is None:
        return None
    try:
        return Snapshot.model_validate({
            "calendarData": calendar or [],
            "messages": messages or [],
            "userProfile": profile,
        })
    except ValidationError as exc:
        raise StorageError(f"Stored snapshot for {key!r} is malformed: {exc}", key=key) from exc


# ---------------------------------------------------------------------------
# Relational CRUD (flush only)
# ---------------------------------------------------------------------------

def read_calendar(db: Session, user_id: str) -> Optional[list]:
    row = db.get(CalendarRecord, user_id)
    if row is None:
        return None
    return json.loads(row.data)


def write_calendar(db: Session, user_id: str, calendar_data: list) -> CalendarRecord:
    row = db.get(CalendarRecord, user_id)
    if row is None:
        row = CalendarRecord(user_id=user_id, data=_jdump(calendar_data))
        db.add(row)
    else:
        row.data = _jdump(calendar_data)
    db.flush()
    return row


def read_messages(db: Session, user_id: str) -> Optional[list]:
    row = db.get(MessageLog, user_id)
    if row is None:
        return None
    return json.loads(row.data)


def write_messages(db: Session, user_id: str, messages: list) -> MessageLog:
    row = db.get(MessageLog, user_id)
    if row is None:
        row = MessageLog(user_id=user_id, data=_jdump(messages))
        db.add(row)
    else:
        row.data = _jdump(messages)
    db.flush()
    return row


def read_profile(db: Session, user_id: str) -> Optional[dict]:
    row = db.get(UserProfileRecord, user_id)
    if row is None:
        return None
    return {
        "id": row.id,
        "name": row.name,
        "pronouns": row.pronouns or None,
        "goals": _jload(row.goals),
        "preferredActivities": _jload(row.preferred_activities),
    }


def write_profile(db: Session, user_id: str, profile: UserProfile) -> UserProfileRecord:
    fields = {
        "name": profile.name,
        "pronouns": profile.pronouns or "",
        "goals": _jdump(profile.goals),
        "preferred_activities": _jdump(profile.preferred_activities),
    }
    row = db.get(UserProfileRecord, user_id)
    if row is None:
        row = UserProfileRecord(id=user_id, **fields)
        db.add(row)
    else:
        for key, value in fields.items():
            setattr(row, key, value)
    db.flush()
    return row


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

class SqlSnapshotAdapter:
    """
    Snapshot storage in the relational backend.

    SQLAlchemy sessions are synchronous; each call runs in a worker thread so
    the event loop stays responsive.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def load(self, key: str) -> Optional[Snapshot]:
        return await asyncio.to_thread(self._load, key)

    async def save(self, key: str, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._save, key, snapshot)

    def _load(self, key: str) -> Optional[Snapshot]:
        try:
            with self._session_factory() as db:
                calendar = read_calendar(db, key)
                messages = read_messages(db, key)
                profile = read_profile(db, key)
        except (SQLAlchemyError, ValueError) as exc:
            raise StorageError(f"Could not load snapshot for {key!r}: {exc}", key=key) from exc
        return _assemble(key, calendar, messages, profile)

    def _save(self, key: str, snapshot: Snapshot) -> None:
        wire = snapshot.to_wire()
        try:
            with self._session_factory() as db:
                write_calendar(db, key, wire["calendarData"])
                write_messages(db, key, wire["messages"])
                if snapshot.user_profile is not None:
                    write_profile(db, key, snapshot.user_profile)
                db.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not save snapshot for {key!r}: {exc}", key=key) from exc
        logger.debug("Saved snapshot for %s (%d days)", key, len(snapshot.calendar_data))


class HttpSnapshotAdapter:
    """Snapshot storage through the service's /api/calendar, /api/messages and /api/user-profile."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 10.0) -> "HttpSnapshotAdapter":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, key: str):
        response = await self._client.get(path, params={"id": key})
        response.raise_for_status()
        return response.json()

    async def _post(self, path: str, body: dict) -> None:
        response = await self._client.post(path, json=body)
        response.raise_for_status()

    async def load(self, key: str) -> Optional[Snapshot]:
        try:
            calendar = await self._get("/api/calendar", key)
            messages = await self._get("/api/messages", key)
            profile = await self._get("/api/user-profile", key)
        except (httpx.HTTPError, ValueError) as exc:
            raise StorageError(f"Could not load snapshot for {key!r}: {exc}", key=key) from exc
        return _assemble(key, calendar, messages, profile)

    async def save(self, key: str, snapshot: Snapshot) -> None:
        wire = snapshot.to_wire()
        try:
            await self._post("/api/calendar", {"userId": key, "calendarData": wire["calendarData"]})
            await self._post("/api/messages", {"userId": key, "messages": wire["messages"]})
            if snapshot.user_profile is not None:
                await self._post("/api/user-profile", {"id": key, **wire["userProfile"]})
        except httpx.HTTPError as exc:
            raise StorageError(f"Could not save snapshot for {key!r}: {exc}", key=key) from exc


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalFileAdapter:
    """One JSON document per key under `directory`. Writes are atomic (temp file + rename)."""

    def __init__(self, directory: str | Path):
        self._dir = Path(directory)

    def path_for(self, key: str) -> Path:
        return self._dir / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    async def load(self, key: str) -> Optional[Snapshot]:
        return await asyncio.to_thread(self._load, key)

    async def save(self, key: str, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._save, key, snapshot)

    def _load(self, key: str) -> Optional[Snapshot]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return Snapshot.model_validate(data)
        except (OSError, ValueError) as exc:
            raise StorageError(f"Could not read {path}: {exc}", key=key) from exc

    def _save(self, key: str, snapshot: Snapshot) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".tmp_snapshot_", dir=str(path.parent), text=True)
        except OSError as exc:
            raise StorageError(f"Could not write {path}: {exc}", key=key) from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_wire(), f, ensure_ascii=False, indent=2)
            os.replace(tmp, str(path))
        except (OSError, TypeError, ValueError) as exc:
            Path(tmp).unlink(missing_ok=True)
            raise StorageError(f"Could not write {path}: {exc}", key=key) from exc
