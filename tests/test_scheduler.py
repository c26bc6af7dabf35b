"""Tests for the keyed periodic task scheduler."""

from unittest.mock import AsyncMock

import pytest

from quant_engine.services import TaskScheduler


class TestTaskScheduler:
    """Tests for TaskScheduler."""

    @pytest.mark.asyncio
    async def test_ticks_every_interval(self, clock):
        scheduler = TaskScheduler(clock)
        callback = AsyncMock()

        assert scheduler.schedule("job", 10, callback)
        await clock.advance(9)
        assert callback.await_count == 0

        await clock.advance(1)
        assert callback.await_count == 1

        await clock.advance(30)
        assert callback.await_count == 4
        await scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_refuses_live_key(self, clock):
        scheduler = TaskScheduler(clock)
        first, second = AsyncMock(), AsyncMock()

        assert scheduler.schedule("job", 5, first)
        assert not scheduler.schedule("job", 5, second)

        await clock.advance(5)
        assert first.await_count == 1
        assert second.await_count == 0
        await scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_invalid_interval(self, clock):
        with pytest.raises(ValueError, match="interval"):
            TaskScheduler(clock).schedule("job", 0, AsyncMock())

    @pytest.mark.asyncio
    async def test_cancel_stops_ticks(self, clock):
        scheduler = TaskScheduler(clock)
        callback = AsyncMock()
        scheduler.schedule("job", 5, callback)

        await clock.advance(5)
        assert scheduler.cancel("job")
        assert not scheduler.cancel("job")
        assert not scheduler.is_scheduled("job")

        await clock.advance(50)
        assert callback.await_count == 1

    @pytest.mark.asyncio
    async def test_cancel_from_inside_callback(self, clock):
        scheduler = TaskScheduler(clock)
        calls = []

        async def tick():
            calls.append(clock.monotonic())
            scheduler.cancel("self")

        scheduler.schedule("self", 5, tick)
        await clock.advance(20)

        assert calls == [5]
        assert scheduler.keys() == []

    @pytest.mark.asyncio
    async def test_key_reusable_after_cancel(self, clock):
        scheduler = TaskScheduler(clock)
        scheduler.schedule("job", 5, AsyncMock())
        scheduler.cancel("job")
        await clock.settle()

        assert scheduler.schedule("job", 5, AsyncMock())
        assert scheduler.keys() == ["job"]
        await scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_running(self, clock):
        """A raising callback is logged and the loop continues."""
        scheduler = TaskScheduler(clock)
        callback = AsyncMock(side_effect=RuntimeError("boom"))
        scheduler.schedule("job", 5, callback)

        await clock.advance(15)

        assert callback.await_count == 3
        assert scheduler.is_scheduled("job")
        await scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_cancel_all(self, clock):
        scheduler = TaskScheduler(clock)
        callbacks = [AsyncMock() for _ in range(3)]
        for i, cb in enumerate(callbacks):
            scheduler.schedule(f"job-{i}", 5, cb)

        await scheduler.cancel_all()
        await clock.advance(20)

        assert scheduler.keys() == []
        assert all(cb.await_count == 0 for cb in callbacks)
