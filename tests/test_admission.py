import asyncio

import pytest

from adpulse.core.fetch.admission import AdmissionQueue


async def test_runs_in_fifo_order_with_single_slot() -> None:
    queue = AdmissionQueue(max_concurrent=1, min_interval_ms=0)
    order: list[int] = []

    def job(n: int):
        async def run() -> int:
            order.append(n)
            await asyncio.sleep(0)
            return n

        return run

    results = await asyncio.gather(*(queue.submit(job(n)) for n in range(5)))

    assert results == [0, 1, 2, 3, 4]
    assert order == [0, 1, 2, 3, 4]


async def test_never_exceeds_concurrency_ceiling() -> None:
    queue = AdmissionQueue(max_concurrent=3, min_interval_ms=0)
    active = 0
    peak = 0

    async def job() -> None:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.02)
        active -= 1

    await asyncio.gather(*(queue.submit(job) for _ in range(10)))

    assert peak == 3
    assert queue.running == 0
    assert queue.queued == 0


async def test_spaces_admissions() -> None:
    queue = AdmissionQueue(max_concurrent=5, min_interval_ms=40)
    loop = asyncio.get_running_loop()
    starts: list[float] = []

    async def job() -> None:
        starts.append(loop.time())

    await asyncio.gather(*(queue.submit(job) for _ in range(3)))

    assert len(starts) == 3
    assert starts[1] - starts[0] >= 0.035
    assert starts[2] - starts[1] >= 0.035


async def test_first_admission_is_immediate() -> None:
    queue = AdmissionQueue(max_concurrent=1, min_interval_ms=10_000)

    async def job() -> str:
        return "done"

    assert await asyncio.wait_for(queue.submit(job), timeout=1) == "done"


async def test_failure_propagates_and_frees_slot() -> None:
    queue = AdmissionQueue(max_concurrent=1, min_interval_ms=0)

    async def boom() -> None:
        raise RuntimeError("boom")

    async def ok() -> str:
        return "ok"

    with pytest.raises(RuntimeError, match="boom"):
        await queue.submit(boom)

    assert await queue.submit(ok) == "ok"
    assert queue.running == 0


async def test_cancelled_waiter_is_skipped() -> None:
    queue = AdmissionQueue(max_concurrent=1, min_interval_ms=0)
    release = asyncio.Event()
    ran: list[str] = []

    async def blocker() -> None:
        await release.wait()

    def job(name: str):
        async def run() -> None:
            ran.append(name)

        return run

    first = asyncio.ensure_future(queue.submit(blocker))
    doomed = asyncio.ensure_future(queue.submit(job("doomed")))
    survivor = asyncio.ensure_future(queue.submit(job("survivor")))
    await asyncio.sleep(0)

    doomed.cancel()
    release.set()
    await first
    await survivor

    assert ran == ["survivor"]


def test_rejects_invalid_limits() -> None:
    with pytest.raises(ValueError):
        AdmissionQueue(max_concurrent=0)
    with pytest.raises(ValueError):
        AdmissionQueue(min_interval_ms=-1)


async def test_stats_track_admissions() -> None:
    queue = AdmissionQueue(max_concurrent=2, min_interval_ms=0)

    async def job() -> None:
        return None

    await asyncio.gather(*(queue.submit(job) for _ in range(4)))
    stats = queue.stats()

    assert stats.admitted_total == 4
    assert stats.running == 0
    assert stats.queued == 0
    assert len(stats.waits) == 4
