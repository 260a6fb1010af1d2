"""
Debounced snapshot writes.

One DebouncedSaver serves one StateStore. It is a small state machine:

    idle    --schedule-->  pending   (timer armed for `delay` seconds)
    pending --schedule-->  pending   (timer re-armed, latest key/generation kept)
    pending --timer------> saving    (write(key, generation) runs as a task)
    pending --flush------> saving    (write awaited immediately)
    pending --cancel-----> idle      (nothing is written)
    saving  --done-------> idle

The saver never captures a snapshot. `write` is called with the identity key
and generation the save was scheduled under and must read the store's state
at fire time, discarding the write if that identity is no longer active.
"""
from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from app.core.logging import get_logger

logger = get_logger(__name__)

WriteFn = Callable[[str, int], Awaitable[None]]


class SaveState(str, enum.Enum):
    idle = "idle"
    pending = "pending"
    saving = "saving"


@dataclass
class PendingSave:
    key: str
    generation: int
    # None when scheduled outside a running event loop; only flush() writes it.
    handle: Optional[asyncio.TimerHandle] = None


class DebouncedSaver:
    def __init__(self, delay: float, write: WriteFn):
        self._delay = delay
        self._write = write
        self._pending: Optional[PendingSave] = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def state(self) -> SaveState:
        if self._pending is not None:
            return SaveState.pending
        if self._in_flight:
            return SaveState.saving
        return SaveState.idle

    @property
    def pending(self) -> Optional[PendingSave]:
        return self._pending

    def schedule(self, key: str, generation: int) -> None:
        """Arm (or re-arm) the timer for a save of `key` under `generation`."""
        self._disarm()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._pending = PendingSave(key, generation)
            return
        handle = loop.call_later(self._delay, self._fire)
        self._pending = PendingSave(key, generation, handle)

    def cancel(self) -> bool:
        """Drop the pending save. Returns True if one was dropped."""
        pending = self._disarm()
        if pending is not None:
            logger.debug("Cancelled pending save for %s (generation %d)", pending.key, pending.generation)
        return pending is not None

    async def flush(self) -> None:
        """Write the pending save now and wait for every in-flight save."""
        pending = self._disarm()
        if pending is not None:
            await self._write(pending.key, pending.generation)
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def _disarm(self) -> Optional[PendingSave]:
        pending, self._pending = self._pending, None
        if pending is not None and pending.handle is not None:
            pending.handle.cancel()
        return pending

    def _fire(self) -> None:
        pending, self._pending = self._pending, None
        if pending is None:
            return
        task = asyncio.get_running_loop().create_task(self._write(pending.key, pending.generation))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
