"""
Inventory store: durable tickets and purchases over async SQLAlchemy.

LOCKING STRATEGY: Pessimistic Row Lock
======================================

Problem:
  Two purchasers read allocation=1 at the same time, both decide there is
  enough, both decrement. The ticket is oversold.

Solution:
  Purchases run inside a TransactionScope. The first statement of the scope
  is

    SELECT allocation FROM tickets WHERE id = :id FOR UPDATE

  which takes an exclusive lock on that one row until the scope commits or
  rolls back. Concurrent purchasers of the same ticket queue on the lock and
  each sees the allocation left by the previous one. Purchasers of other
  tickets never touch that row and are not blocked.

  Engines without row locks (SQLite renders FOR UPDATE as nothing) run in
  "local" mode: the scope also takes an in-process asyncio.Lock for the
  ticket, held until the scope ends. This is only correct when one process
  owns the database.

  The CHECK (allocation >= 0) constraint is the last line of defence.

Scope exit always rolls back unless commit() succeeded, then releases the
local locks and returns the connection to the pool, including when the
request task is cancelled.
"""

import time
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator, Optional

from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ticketing.core.errors import StorageError, TicketNotFoundError, ValidationError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import lock_wait
from ticketing.models import Purchase, Ticket
from ticketing.store.locks import TicketLockRegistry

logger = get_logger(__name__)

LOCK_MODES = ("row", "local")
MIN_ALLOCATION = 1


@contextmanager
def storage_errors(message: str, operation: str) -> Iterator[None]:
    """Re-raise driver and SQLAlchemy failures as StorageError."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error("storage_operation_failed", operation=operation, error=str(e))
        raise StorageError(message, operation=operation) from e


class TransactionScope:
    """
    One unit of work over the store: a session, its transaction, and any
    ticket locks taken inside it.
    """

    def __init__(self, session: AsyncSession, locks: Optional[TicketLockRegistry] = None):
        self.session = session
        self.committed = False
        self._locks = locks
        self._held: list[int] = []

    async def commit(self) -> None:
        with storage_errors("Failed to commit transaction", "commit"):
            await self.session.commit()
        self.committed = True

    async def _hold(self, ticket_id: int) -> None:
        if self._locks is None or ticket_id in self._held:
            return
        await self._locks.acquire(ticket_id)
        self._held.append(ticket_id)

    def _release_locks(self) -> None:
        while self._held:
            self._locks.release(self._held.pop())


class InventoryStore:
    def __init__(self, engine: AsyncEngine, lock_mode: str = "row"):
        if lock_mode not in LOCK_MODES:
            raise ValueError(f"Unknown lock mode {lock_mode!r}, expected one of {LOCK_MODES}")
        self.engine = engine
        self.lock_mode = lock_mode
        self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self._locks = TicketLockRegistry() if lock_mode == "local" else None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[TransactionScope]:
        scope = TransactionScope(self._sessionmaker(), self._locks)
        try:
            yield scope
        finally:
            try:
                if not scope.committed:
                    await scope.session.rollback()
            finally:
                scope._release_locks()
                await scope.session.close()

    async def create_ticket(self, name: str, description: str, allocation: int) -> Ticket:
        if not name or not name.strip():
            raise ValidationError("name is required")
        if not description or not description.strip():
            raise ValidationError("desc is required")
        if isinstance(allocation, bool) or not isinstance(allocation, int) or allocation < MIN_ALLOCATION:
            raise ValidationError(f"allocation must be an integer >= {MIN_ALLOCATION}")

        ticket = Ticket(name=name, description=description, allocation=allocation)
        with storage_errors("Failed to create ticket", "create_ticket"):
            async with self._sessionmaker() as session, session.begin():
                session.add(ticket)
        return ticket

    async def get_ticket(self, ticket_id: int) -> Ticket:
        with storage_errors("Failed to retrieve ticket", "get_ticket"):
            async with self._sessionmaker() as session:
                ticket = await session.get(Ticket, ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    async def list_tickets(self) -> list[Ticket]:
        with storage_errors("Failed to retrieve tickets", "list_tickets"):
            async with self._sessionmaker() as session:
                result = await session.execute(select(Ticket).order_by(Ticket.id))
                return list(result.scalars().all())

    async def list_purchases(self, ticket_id: int) -> list[Purchase]:
        with storage_errors("Failed to retrieve purchases", "list_purchases"):
            async with self._sessionmaker() as session:
                if await session.get(Ticket, ticket_id) is None:
                    raise TicketNotFoundError(ticket_id)
                result = await session.execute(
                    select(Purchase).where(Purchase.ticket_id == ticket_id).order_by(Purchase.id)
                )
                return list(result.scalars().all())

    async def lock_ticket_for_update(self, ticket_id: int, scope: TransactionScope) -> int:
        """
        Read the ticket's allocation while taking its exclusive lock.
        Blocks until no other scope holds the same ticket.
        """
        started = time.perf_counter()
        await scope._hold(ticket_id)
        with storage_errors("Failed to retrieve ticket", "lock_ticket"):
            result = await scope.session.execute(
                select(Ticket.allocation).where(Ticket.id == ticket_id).with_for_update()
            )
            allocation = result.scalar_one_or_none()
        lock_wait.observe(time.perf_counter() - started)

        if allocation is None:
            raise TicketNotFoundError(ticket_id)
        return allocation

    async def decrement_allocation(self, ticket_id: int, new_allocation: int, scope: TransactionScope) -> None:
        with storage_errors("Failed to update ticket allocation", "decrement_allocation"):
            await scope.session.execute(
                update(Ticket).where(Ticket.id == ticket_id).values(allocation=new_allocation)
            )

    async def record_purchase(
        self,
        ticket_id: int,
        user_id: str,
        quantity: int,
        scope: TransactionScope,
    ) -> Purchase:
        purchase = Purchase(ticket_id=ticket_id, user_id=user_id, quantity=quantity)
        with storage_errors("Failed to record purchase", "record_purchase"):
            scope.session.add(purchase)
            await scope.session.flush()
        return purchase

    async def ping(self) -> bool:
        with storage_errors("Database unreachable", "ping"):
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        return True

    async def close(self) -> None:
        await self.engine.dispose()
