"""Tests for gh_usecases.utils.debounce - CancellableTimer."""

import asyncio

import pytest

from gh_usecases.utils.debounce import CancellableTimer


class TestCancellableTimer:
    """Tests for scheduling, replacing and cancelling deferred calls."""

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        timer = CancellableTimer()
        calls = []

        async def callback():
            calls.append("fired")

        timer.schedule(0.01, callback)
        assert timer.pending

        await asyncio.sleep(0.05)
        await timer.drain()

        assert calls == ["fired"]
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_schedule_replaces_pending_call(self):
        timer = CancellableTimer()
        calls = []

        def make(value):
            async def callback():
                calls.append(value)

            return callback

        timer.schedule(0.03, make("first"))
        timer.schedule(0.03, make("second"))
        await asyncio.sleep(0.08)
        await timer.drain()

        assert calls == ["second"]

    @pytest.mark.asyncio
    async def test_cancel_pending(self):
        timer = CancellableTimer()
        calls = []

        async def callback():
            calls.append("fired")

        timer.schedule(0.01, callback)

        assert timer.cancel_pending() is True
        assert timer.cancel_pending() is False
        await asyncio.sleep(0.03)
        assert calls == []

    @pytest.mark.asyncio
    async def test_fired_call_survives_later_schedule(self):
        timer = CancellableTimer()
        started = asyncio.Event()
        finished = []

        async def slow():
            started.set()
            await asyncio.sleep(0.03)
            finished.append("slow")

        async def other():
            finished.append("other")

        timer.schedule(0, slow)
        await started.wait()
        timer.schedule(10, other)
        timer.cancel_pending()
        await timer.drain()

        assert finished == ["slow"]

    @pytest.mark.asyncio
    async def test_fire_now_runs_immediately(self):
        timer = CancellableTimer()
        calls = []

        async def callback():
            calls.append("now")

        timer.schedule(10, callback)
        await timer.fire_now(callback)

        assert calls == ["now"]
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_drain(self):
        timer = CancellableTimer()

        async def boom():
            raise RuntimeError("boom")

        timer.fire_now(boom)
        await timer.drain()

        assert timer.in_flight == 0
