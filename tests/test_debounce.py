import asyncio

import pytest

from app.services.debounce import DebouncedSaver, SaveState


class Recorder:
    def __init__(self, gate: asyncio.Event | None = None):
        self.calls: list[tuple[str, int]] = []
        self.gate = gate

    async def __call__(self, key: str, generation: int) -> None:
        if self.gate is not None:
            await self.gate.wait()
        self.calls.append((key, generation))


def test_schedule_without_loop_waits_for_flush():
    write = Recorder()
    saver = DebouncedSaver(0.01, write)
    saver.schedule("guest", 1)
    assert saver.state is SaveState.pending
    assert saver.pending.handle is None
    asyncio.run(saver.flush())
    assert write.calls == [("guest", 1)]
    assert saver.state is SaveState.idle


@pytest.mark.asyncio
class TestDebouncedSaver:
    async def test_fires_once_after_delay(self):
        write = Recorder()
        saver = DebouncedSaver(0.03, write)
        saver.schedule("guest", 1)
        saver.schedule("guest", 1)
        saver.schedule("guest", 1)
        assert write.calls == []
        await asyncio.sleep(0.1)
        assert write.calls == [("guest", 1)]
        assert saver.state is SaveState.idle

    async def test_latest_key_and_generation_win(self):
        write = Recorder()
        saver = DebouncedSaver(0.03, write)
        saver.schedule("guest", 1)
        saver.schedule("alice", 2)
        await asyncio.sleep(0.1)
        assert write.calls == [("alice", 2)]

    async def test_cancel_drops_pending(self):
        write = Recorder()
        saver = DebouncedSaver(0.03, write)
        saver.schedule("guest", 1)
        assert saver.cancel() is True
        assert saver.cancel() is False
        await asyncio.sleep(0.1)
        assert write.calls == []
        assert saver.state is SaveState.idle

    async def test_flush_writes_immediately(self):
        write = Recorder()
        saver = DebouncedSaver(10, write)
        saver.schedule("guest", 3)
        await saver.flush()
        assert write.calls == [("guest", 3)]
        await saver.flush()
        assert write.calls == [("guest", 3)]

    async def test_flush_waits_for_in_flight_save(self):
        gate = asyncio.Event()
        write = Recorder(gate)
        saver = DebouncedSaver(0.01, write)
        saver.schedule("guest", 1)
        await asyncio.sleep(0.05)
        assert saver.state is SaveState.saving

        flushing = asyncio.create_task(saver.flush())
        await asyncio.sleep(0)
        assert not flushing.done()
        gate.set()
        await flushing
        assert write.calls == [("guest", 1)]
        assert saver.state is SaveState.idle

    async def test_schedule_while_saving_queues_next(self):
        gate = asyncio.Event()
        write = Recorder(gate)
        saver = DebouncedSaver(0.01, write)
        saver.schedule("guest", 1)
        await asyncio.sleep(0.05)
        saver.schedule("guest", 1)
        assert saver.state is SaveState.pending
        gate.set()
        await saver.flush()
        assert write.calls == [("guest", 1), ("guest", 1)]
