from ticketing.store.inventory_store import InventoryStore, TransactionScope
from ticketing.store.locks import TicketLockRegistry

__all__ = ["InventoryStore", "TransactionScope", "TicketLockRegistry"]
