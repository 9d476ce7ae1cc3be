"""Tests for KeyedLocks."""

import asyncio

from hrdesk.services.locking_service import KeyedLocks


class TestKeyedLocks:
    async def test_same_key_is_serialized(self):
        locks = KeyedLocks()
        order = []

        async def writer(name, delay):
            async with locks.hold(("emp", 1)):
                order.append(f"{name}-start")
                await asyncio.sleep(delay)
                order.append(f"{name}-end")

        await asyncio.gather(writer("a", 0.02), writer("b", 0))

        assert order == ["a-start", "a-end", "b-start", "b-end"]

    async def test_different_keys_do_not_block(self):
        locks = KeyedLocks()
        entered = asyncio.Event()

        async def holder():
            async with locks.hold("x"):
                await entered.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)
        async with locks.hold("y"):
            entered.set()
        await task

    async def test_idle_locks_are_dropped(self):
        locks = KeyedLocks()

        async with locks.hold("x"):
            assert locks.is_locked("x")
            assert len(locks) == 1

        assert not locks.is_locked("x")
        assert len(locks) == 0
