"""
Ticket service handling creation and reads.
"""

from ticketing.core.logging import get_logger
from ticketing.core.metrics import tickets_created
from ticketing.models import Purchase, Ticket
from ticketing.schemas.ticket import TicketCreate, TicketResponse
from ticketing.services.cache_service import (
    get_cached_tickets,
    get_ticket_generation,
    invalidate_ticket_cache,
    set_cached_tickets,
)
from ticketing.store import InventoryStore

logger = get_logger(__name__)


async def create_ticket(store: InventoryStore, ticket_data: TicketCreate) -> Ticket:
    """Create a ticket with its full allocation available."""
    ticket = await store.create_ticket(
        name=ticket_data.name,
        description=ticket_data.desc,
        allocation=ticket_data.allocation,
    )
    tickets_created.inc()
    logger.info("ticket_created", ticket_id=ticket.id, name=ticket.name, allocation=ticket.allocation)
    await invalidate_ticket_cache()
    return ticket


async def get_ticket(store: InventoryStore, ticket_id: int) -> Ticket:
    """Single ticket with its live allocation. Never cached."""
    return await store.get_ticket(ticket_id)


async def list_tickets(store: InventoryStore) -> list[dict]:
    """
    All tickets ordered by id, as response dicts.
    Served from Redis when a fresh listing is cached.
    """
    # Read before the DB so a concurrent invalidation orphans this listing
    generation = await get_ticket_generation()
    if generation is not None:
        cached = await get_cached_tickets(generation)
        if cached is not None:
            logger.debug("tickets_list_cache_hit", count=len(cached), generation=generation)
            return cached

    tickets = await store.list_tickets()
    data = [TicketResponse.model_validate(t).model_dump() for t in tickets]
    if generation is not None:
        await set_cached_tickets(generation, data)
    return data


async def list_purchases(store: InventoryStore, ticket_id: int) -> list[Purchase]:
    return await store.list_purchases(ticket_id)
