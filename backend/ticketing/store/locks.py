"""
In-process per-ticket mutexes.

Used by the "local" lock mode, where the database cannot hold row locks
(SQLite) and the service runs as a single process. Entries are reference
counted so the registry only holds locks for tickets somebody is using.
"""

import asyncio


class TicketLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    async def acquire(self, ticket_id: int) -> None:
        lock = self._locks.get(ticket_id)
        if lock is None:
            lock = self._locks[ticket_id] = asyncio.Lock()
        self._users[ticket_id] = self._users.get(ticket_id, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            # Cancelled while waiting
            self._forget(ticket_id)
            raise

    def release(self, ticket_id: int) -> None:
        self._locks[ticket_id].release()
        self._forget(ticket_id)

    def is_locked(self, ticket_id: int) -> bool:
        lock = self._locks.get(ticket_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    def _forget(self, ticket_id: int) -> None:
        remaining = self._users[ticket_id] - 1
        if remaining:
            self._users[ticket_id] = remaining
        else:
            del self._users[ticket_id]
            del self._locks[ticket_id]
