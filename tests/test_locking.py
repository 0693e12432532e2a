# ============================================================================
# INITIALIZATION LOCK TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Tests - Concurrency control
# PURPOSE: Verify in-flight joining, failure sharing, and key release
# CREATED: 18 OCT 2026
# ============================================================================
"""
InitializationLocks Tests

Run with:
    pytest tests/test_locking.py -v
"""

import asyncio

import pytest

from infrastructure.locking import InitializationLocks

KEY = ("products", "products")


class TestJoin:

    def test_concurrent_callers_share_one_run(self):
        locks = InitializationLocks()
        calls = []

        async def work():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "created"

        async def scenario():
            return await asyncio.gather(*[locks.run(KEY, work) for _ in range(3)])

        assert asyncio.run(scenario()) == ["created", "created", "created"]
        assert calls == [1]

    def test_distinct_keys_run_independently(self):
        locks = InitializationLocks()
        calls = []

        async def work():
            calls.append(1)
            await asyncio.sleep(0)

        async def scenario():
            await asyncio.gather(
                locks.run(("a", "a"), work),
                locks.run(("b", "b"), work),
                locks.run(("a", "other_table"), work),
            )

        asyncio.run(scenario())
        assert len(calls) == 3

    def test_sequential_callers_each_run(self):
        locks = InitializationLocks()
        calls = []

        async def work():
            calls.append(1)

        async def scenario():
            await locks.run(KEY, work)
            await locks.run(KEY, work)

        asyncio.run(scenario())
        assert len(calls) == 2


class TestFailure:

    def test_failure_reaches_every_caller(self):
        locks = InitializationLocks()

        async def work():
            await asyncio.sleep(0)
            raise RuntimeError("disk full")

        async def scenario():
            return await asyncio.gather(
                locks.run(KEY, work), locks.run(KEY, work), return_exceptions=True
            )

        first, second = asyncio.run(scenario())
        assert isinstance(first, RuntimeError)
        assert second is first

    def test_key_released_after_failure(self):
        locks = InitializationLocks()

        async def failing():
            raise RuntimeError("boom")

        async def succeeding():
            return "ok"

        async def scenario():
            with pytest.raises(RuntimeError):
                await locks.run(KEY, failing)
            await asyncio.sleep(0)
            assert not locks.is_locked(KEY)
            return await locks.run(KEY, succeeding)

        assert asyncio.run(scenario()) == "ok"
        assert len(locks) == 0


class TestLockState:

    def test_locked_only_while_running(self):
        locks = InitializationLocks()
        gate = asyncio.Event()

        async def work():
            await gate.wait()

        async def scenario():
            task = asyncio.create_task(locks.run(KEY, work))
            await asyncio.sleep(0)
            during = locks.is_locked(KEY)
            gate.set()
            await task
            await asyncio.sleep(0)
            return during, locks.is_locked(KEY)

        assert asyncio.run(scenario()) == (True, False)

    def test_cancelled_waiter_does_not_cancel_work(self):
        locks = InitializationLocks()
        gate = asyncio.Event()
        finished = []

        async def work():
            await gate.wait()
            finished.append(1)
            return "done"

        async def scenario():
            owner = asyncio.create_task(locks.run(KEY, work))
            await asyncio.sleep(0)
            waiter = asyncio.create_task(locks.run(KEY, work))
            await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            gate.set()
            return await owner

        assert asyncio.run(scenario()) == "done"
        assert finished == [1]

    def test_make_key(self):
        assert InitializationLocks.make_key("Product", "products") == ("Product", "products")
