from ticketing.schemas.purchase import PurchaseCreate, PurchaseResponse
from ticketing.schemas.ticket import TicketCreate, TicketResponse

__all__ = [
    "TicketCreate", "TicketResponse",
    "PurchaseCreate", "PurchaseResponse",
]
