import asyncio

import pytest

from vitabalance.services.debounce import FieldDebouncer


class RecordingWriter:
    def __init__(self, fail_on=None):
        self.writes = []
        self.fail_on = fail_on

    async def __call__(self, field, value):
        if field == self.fail_on:
            raise RuntimeError("store unavailable")
        self.writes.append((field, value))


class BlockingWriter:
    """Holds each write open until ``release`` is set."""

    def __init__(self):
        self.writes = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, field, value):
        self.started.set()
        await self.release.wait()
        self.writes.append((field, value))


@pytest.mark.asyncio
async def test_rapid_edits_write_last_value_once():
    writer = RecordingWriter()
    debouncer = FieldDebouncer(0.05, writer)

    for weight in (7, 72, 72.5):
        debouncer.push("weight", weight)
    await asyncio.sleep(0.15)

    assert writer.writes == [("weight", 72.5)]
    assert debouncer.pending_fields == ()


@pytest.mark.asyncio
async def test_new_value_restarts_timer():
    writer = RecordingWriter()
    debouncer = FieldDebouncer(0.1, writer)

    debouncer.push("age", 3)
    await asyncio.sleep(0.06)
    debouncer.push("age", 30)
    await asyncio.sleep(0.06)
    assert writer.writes == []

    await asyncio.sleep(0.1)
    assert writer.writes == [("age", 30)]


@pytest.mark.asyncio
async def test_fields_are_independent():
    writer = RecordingWriter()
    debouncer = FieldDebouncer(0.05, writer)

    debouncer.push("weight", 70)
    debouncer.push("height", 175)
    debouncer.push("weight", 71)
    await asyncio.sleep(0.15)

    assert sorted(writer.writes) == [("height", 175), ("weight", 71)]


@pytest.mark.asyncio
async def test_flush_writes_immediately():
    writer = RecordingWriter()
    debouncer = FieldDebouncer(10, writer)

    debouncer.push("goal", "lose_weight")
    debouncer.push("gender", "female")
    await debouncer.flush()

    assert sorted(writer.writes) == [("gender", "female"), ("goal", "lose_weight")]
    assert debouncer.pending_fields == ()


@pytest.mark.asyncio
async def test_aclose_flushes_and_refuses_pushes():
    writer = RecordingWriter()
    async with FieldDebouncer(10, writer) as debouncer:
        debouncer.push("weight", 80)

    assert writer.writes == [("weight", 80)]
    with pytest.raises(RuntimeError):
        debouncer.push("weight", 81)


@pytest.mark.asyncio
async def test_failed_write_does_not_block_other_fields():
    writer = RecordingWriter(fail_on="height")
    debouncer = FieldDebouncer(0.02, writer)

    debouncer.push("height", 175)
    debouncer.push("weight", 70)
    await asyncio.sleep(0.1)

    assert writer.writes == [("weight", 70)]


@pytest.mark.asyncio
async def test_aclose_waits_for_write_already_running():
    writer = BlockingWriter()
    debouncer = FieldDebouncer(0.01, writer)

    debouncer.push("weight", 70)
    await asyncio.wait_for(writer.started.wait(), timeout=1)
    debouncer.push("weight", 71)
    closing = asyncio.ensure_future(debouncer.aclose())
    await asyncio.sleep(0.05)
    assert not closing.done()

    writer.release.set()
    await asyncio.wait_for(closing, timeout=1)

    assert writer.writes == [("weight", 70), ("weight", 71)]
