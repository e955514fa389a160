"""Tests for settle-all fan-out"""
import asyncio

import pytest

from frugsy_api.core.fanout import settle_all, wait_all


@pytest.mark.asyncio
async def test_settle_all_keeps_order_and_failures():
    async def ok(value, delay):
        await asyncio.sleep(delay)
        return value

    async def boom():
        raise ValueError("bad branch")

    outcomes = await settle_all([
        lambda: ok("slow", 0.02),
        boom,
        lambda: ok("fast", 0),
    ])

    assert [o.index for o in outcomes] == [0, 1, 2]
    assert outcomes[0].value == "slow"
    assert not outcomes[1].ok
    assert isinstance(outcomes[1].error, ValueError)
    assert outcomes[2].value == "fast"


@pytest.mark.asyncio
async def test_settle_all_does_not_short_circuit():
    finished = []

    async def fail_fast():
        raise RuntimeError("first")

    async def slow():
        await asyncio.sleep(0.01)
        finished.append("slow")
        return 1

    outcomes = await settle_all([fail_fast, slow])
    assert finished == ["slow"]
    assert outcomes[1].ok


@pytest.mark.asyncio
async def test_branches_run_concurrently():
    started = []
    release = asyncio.Event()

    async def branch(i):
        started.append(i)
        await release.wait()
        return i

    task = asyncio.ensure_future(settle_all([lambda i=i: branch(i) for i in range(3)]))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert sorted(started) == [0, 1, 2]
    release.set()
    outcomes = await task
    assert [o.value for o in outcomes] == [0, 1, 2]


@pytest.mark.asyncio
async def test_empty():
    assert await settle_all([]) == []
    assert await wait_all([]) == []


@pytest.mark.asyncio
async def test_wait_all_reraises():
    async def ok():
        return 1

    async def boom():
        raise KeyError("x")

    assert await wait_all([ok, ok]) == [1, 1]
    with pytest.raises(KeyError):
        await wait_all([ok, boom])


@pytest.mark.asyncio
async def test_cancelled_branch_is_a_failed_outcome():
    async def ok():
        await asyncio.sleep(0)
        return "priced"

    async def cancelled():
        raise asyncio.CancelledError()

    outcomes = await settle_all([ok, cancelled])

    assert outcomes[0].value == "priced"
    assert not outcomes[1].ok
    assert isinstance(outcomes[1].error, asyncio.CancelledError)


@pytest.mark.asyncio
async def test_cancelling_the_caller_still_propagates():
    release = asyncio.Event()

    async def blocked():
        await release.wait()

    task = asyncio.ensure_future(settle_all([blocked, blocked]))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
