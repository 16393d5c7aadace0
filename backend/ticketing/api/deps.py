"""
Request dependencies. The store is created once in the lifespan and threaded
into handlers from app.state; tests override get_store.
"""

from fastapi import Depends, Request

from ticketing.services.purchase_service import PurchaseCoordinator
from ticketing.store import InventoryStore


def get_store(request: Request) -> InventoryStore:
    return request.app.state.store


def get_coordinator(store: InventoryStore = Depends(get_store)) -> PurchaseCoordinator:
    return PurchaseCoordinator(store)
