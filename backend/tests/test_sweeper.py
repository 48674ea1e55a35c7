"""Tests for the periodic session sweeper."""

import asyncio

import pytest

from services.session import SessionRegistry
from services.sweeper import SessionSweeper


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000_000.0

    def __call__(self) -> float:
        return self.now


def test_sweep_once_removes_expired():
    clock = FakeClock()
    registry = SessionRegistry(ttl_seconds=60, clock=clock)
    registry.create("old")
    clock.now += 61
    registry.create("new")

    sweeper = SessionSweeper(registry, interval_seconds=3600)

    assert sweeper.sweep_once() == 1
    assert registry.exists("new")
    assert not registry.exists("old")


@pytest.mark.asyncio
async def test_background_task_sweeps_on_interval():
    clock = FakeClock()
    registry = SessionRegistry(ttl_seconds=60, clock=clock)
    registry.create("old")
    clock.now += 120

    sweeper = SessionSweeper(registry, interval_seconds=0.01)
    sweeper.start()
    try:
        for _ in range(100):
            if not registry.exists("old"):
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert not registry.exists("old")
    assert not sweeper.running


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_cancels():
    sweeper = SessionSweeper(SessionRegistry(), interval_seconds=3600)
    sweeper.start()
    first = sweeper._task
    sweeper.start()
    assert sweeper._task is first
    assert sweeper.running

    await sweeper.stop()
    assert not sweeper.running
    assert first.cancelled()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    sweeper = SessionSweeper(SessionRegistry(), interval_seconds=1)
    await sweeper.stop()
    assert not sweeper.running


@pytest.mark.asyncio
async def test_sweep_errors_do_not_kill_task(monkeypatch):
    registry = SessionRegistry()
    calls = []

    def failing_sweep():
        calls.append(1)
        raise RuntimeError("boom")

    monkeypatch.setattr(registry, "sweep_expired", failing_sweep)
    sweeper = SessionSweeper(registry, interval_seconds=0.01)
    sweeper.start()
    try:
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        assert sweeper.running
    finally:
        await sweeper.stop()
    assert len(calls) >= 2
