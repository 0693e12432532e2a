# ============================================================================
# INITIALIZATION LOCKS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Infrastructure - Concurrency control
# PURPOSE: One in-flight initializer per (schema name, table name) key
# CREATED: 18 OCT 2026
# ============================================================================
"""
Initialization Locks

Registry of in-flight schema initializations, keyed by
(schema name, table name). The first caller for a key starts the work as
an asyncio.Task; concurrent callers for the same key await that task and
reuse its outcome instead of issuing their own DDL.

Waiters await the task through asyncio.shield, so cancelling a waiter
never cancels the shared initialization. The key is released when the
task finishes, whether it succeeded or failed.

Scope is one coordinator in one process. Cross-process coordination is
left to the database (CREATE ... IF NOT EXISTS).

Usage:
    locks = InitializationLocks()

    async def create():
        await db.query(ddl)

    await locks.run(("products", "products"), create)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

LockKey = Tuple[str, str]
T = TypeVar("T")


class InitializationLocks:
    """
    Key -> in-flight task registry.

    Single event loop only: the check-and-insert in run() contains no await,
    so it is atomic with respect to other coroutines.
    """

    def __init__(self):
        self._tasks: Dict[LockKey, asyncio.Task] = {}

    @staticmethod
    def make_key(schema_name: str, table_name: str) -> LockKey:
        return (schema_name, table_name)

    def in_flight(self, key: LockKey) -> Optional[asyncio.Task]:
        """The running task for key, if any."""
        task = self._tasks.get(key)
        if task is not None and task.done():
            return None
        return task

    def is_locked(self, key: LockKey) -> bool:
        return self.in_flight(key) is not None

    async def run(
        self,
        key: LockKey,
        factory: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run factory() for key, or join the run already in flight.

        Args:
            key: (schema name, table name)
            factory: Zero-argument coroutine function doing the work

        Returns:
            The work's result (shared by every caller for this run)

        Raises:
            Whatever the work raised, to every caller
        """
        task = self.in_flight(key)
        if task is not None:
            logger.debug(f"Waiting for in-flight initialization of {key[0]} ({key[1]})")
            return await asyncio.shield(task)

        task = asyncio.ensure_future(factory())
        self._tasks[key] = task
        task.add_done_callback(lambda done, k=key: self._release(k, done))
        logger.debug(f"Acquired initialization lock for {key[0]} ({key[1]})")

        return await asyncio.shield(task)

    def _release(self, key: LockKey, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
            logger.debug(f"Released initialization lock for {key[0]} ({key[1]})")
        if not task.cancelled():
            # mark retrieved; waiters may all be gone
            task.exception()

    def clear(self) -> None:
        """Forget every key. In-flight tasks keep running."""
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["InitializationLocks", "LockKey"]
