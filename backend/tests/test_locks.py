"""Tests for per-key asyncio locks."""

import asyncio

import pytest

from jensengpt.utils.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLocks()
    order = []

    async def worker(name):
        async with locks.hold("conv"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


@pytest.mark.asyncio
async def test_locks_are_released_after_use():
    locks = KeyedLocks()
    async with locks.hold("x"):
        async with locks.hold("y"):
            assert len(locks) == 2
    assert len(locks) == 0
