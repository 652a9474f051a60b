import asyncio

import pytest

from memo.services.analysis_guard import AnalysisGuard


def test_second_acquire_is_skipped_not_queued():
    guard = AnalysisGuard()
    assert guard.try_acquire() is True
    assert guard.busy
    assert guard.try_acquire() is False
    assert guard.try_acquire() is False
    assert guard.skipped == 2
    guard.release()
    assert not guard.busy
    assert guard.try_acquire() is True
    guard.release()


@pytest.mark.asyncio
async def test_run_exclusive_admits_one_cycle_at_a_time():
    guard = AnalysisGuard()
    started = asyncio.Event()
    finish = asyncio.Event()
    runs = 0

    async def cycle():
        nonlocal runs
        runs += 1
        started.set()
        await finish.wait()
        return "done"

    first = asyncio.create_task(guard.run_exclusive(cycle))
    await started.wait()

    results = await asyncio.gather(*(guard.run_exclusive(cycle) for _ in range(5)))
    assert results == [(False, None)] * 5

    finish.set()
    assert await first == (True, "done")
    assert runs == 1
    assert guard.skipped == 5
    assert not guard.busy


@pytest.mark.asyncio
async def test_run_exclusive_releases_on_error():
    guard = AnalysisGuard()

    async def boom():
        raise RuntimeError("x")

    with pytest.raises(RuntimeError):
        await guard.run_exclusive(boom)
    assert not guard.busy
