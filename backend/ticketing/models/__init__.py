from ticketing.models.purchase import Purchase
from ticketing.models.ticket import Ticket

__all__ = ["Ticket", "Purchase"]
