"""Owner-scoped locks serializing check-then-write within one process."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class OwnerLocks:
    """Registry of one ``asyncio.Lock`` per owner.

    Entries are removed once no task holds or waits on them, so the registry
    only grows with the number of owners being booked concurrently.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, owner_id: str) -> bool:
        lock = self._locks.get(owner_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        """Hold the lock for ``owner_id`` for the duration of the block."""
        lock = self._locks.setdefault(owner_id, asyncio.Lock())
        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_id] -= 1
            if self._users[owner_id] == 0:
                del self._users[owner_id]
                del self._locks[owner_id]
