"""Tests for the per-request deadline."""

import asyncio

import pytest

from lore_engine.infra.deadline import Deadline, DeadlineExceeded


async def _value(v, delay=0.0):
    await asyncio.sleep(delay)
    return v


@pytest.mark.asyncio
async def test_run_within_budget():
    assert await Deadline(5).run(_value(42)) == 42


@pytest.mark.asyncio
async def test_run_past_budget_raises():
    with pytest.raises(DeadlineExceeded):
        await Deadline(0.05).run(_value(1, delay=1))


@pytest.mark.asyncio
async def test_expired_deadline_does_not_start_work():
    deadline = Deadline(0)
    assert deadline.expired
    with pytest.raises(DeadlineExceeded):
        deadline.check()
    with pytest.raises(DeadlineExceeded):
        await deadline.run(_value(1))


@pytest.mark.asyncio
async def test_cleanup_gets_grace():
    deadline = Deadline(0, grace=1.0)
    assert await deadline.run(_value("saved", delay=0.01), cleanup=True) == "saved"


def test_remaining_never_negative():
    assert Deadline(-5).remaining() == 0.0
