import asyncio

import pytest

from backdrop.scheduling import CycleProfiler, RepaintClock


def test_request_fires_once_with_timestamp():
    clock = RepaintClock(100.0)
    fired = []

    async def scenario():
        clock.request(fired.append)
        assert clock.pending
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert len(fired) == 1
    assert fired[0] > 0
    assert not clock.pending


def test_new_request_replaces_pending_one():
    clock = RepaintClock(100.0)
    first, second = [], []

    async def scenario():
        clock.request(first.append)
        clock.request(second.append)
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert first == []
    assert len(second) == 1


def test_cancel_drops_pending_request():
    clock = RepaintClock(100.0)
    fired = []

    async def scenario():
        clock.request(fired.append)
        clock.cancel()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert fired == []
    assert not clock.pending


def test_invalid_refresh_rate():
    with pytest.raises(ValueError):
        RepaintClock(0)


def test_profiler_averages_and_ignores_unknown_stages():
    profiler = CycleProfiler(interval=0.0)
    profiler.record_cycle({"frame": 1.0, "segment": 10.0, "composite": 2.0, "total": 13.0, "other": 5.0})
    profiler.record_cycle({"frame": 3.0, "segment": 20.0, "composite": 4.0, "total": 27.0})

    averages = profiler.averages()

    assert averages == {"frame": 2.0, "segment": 15.0, "composite": 3.0, "total": 20.0}
    assert profiler.log_if_ready()
    assert profiler.frame_count == 0
