"""
Ticket endpoints: inventory management and concurrency-safe purchases.
"""

from fastapi import APIRouter, Depends, Response, status

from ticketing.api.deps import get_coordinator, get_store
from ticketing.schemas.purchase import PurchaseCreate, PurchaseResponse
from ticketing.schemas.ticket import TicketCreate, TicketResponse
from ticketing.services import ticket_service
from ticketing.services.purchase_service import PurchaseCoordinator
from ticketing.store import InventoryStore

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket_endpoint(
    ticket_data: TicketCreate,
    store: InventoryStore = Depends(get_store),
):
    """Create a ticket with its initial allocation."""
    return await ticket_service.create_ticket(store, ticket_data)


@router.get("", response_model=list[TicketResponse])
async def list_tickets_endpoint(store: InventoryStore = Depends(get_store)):
    """List all tickets. Cached in Redis until the next create or purchase."""
    return await ticket_service.list_tickets(store)


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket_endpoint(
    ticket_id: int,
    store: InventoryStore = Depends(get_store),
):
    """Get a single ticket with its live allocation."""
    return await ticket_service.get_ticket(store, ticket_id)


@router.post("/{ticket_id}/purchases", status_code=status.HTTP_200_OK)
async def purchase_ticket_endpoint(
    ticket_id: int,
    purchase_data: PurchaseCreate,
    coordinator: PurchaseCoordinator = Depends(get_coordinator),
):
    """
    Purchase `quantity` units of a ticket.

    The ticket row is locked for the duration of the transaction, so
    concurrent purchases of the same ticket are serialized and can never
    oversell it. Returns 400 when the remaining allocation is too small.
    """
    await coordinator.purchase(ticket_id, purchase_data.user_id, purchase_data.quantity)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/{ticket_id}/purchases", response_model=list[PurchaseResponse])
async def list_purchases_endpoint(
    ticket_id: int,
    store: InventoryStore = Depends(get_store),
):
    """Purchase history for a ticket, oldest first."""
    return await ticket_service.list_purchases(store, ticket_id)
