"""
Purchase coordinator: the only code path that changes a ticket's allocation.

PROTOCOL
========

  1. Validate quantity >= 1 and a non-empty user id. No store access yet.
  2. Open a TransactionScope.
  3. lock_ticket_for_update -> current allocation (exclusive until scope end)
  4. allocation < quantity  -> InsufficientInventoryError
  5. decrement_allocation(allocation - quantity)
  6. record_purchase
  7. commit

Any failure after step 2, including cancellation of the request task, leaves
the scope without a successful commit, and the scope's exit rolls it back.
The decrement and the purchase row therefore persist together or not at all.

Attempt states:

  STARTED -> LOCKED -> VALIDATED -> DECREMENTED -> RECORDED -> COMMITTED

  Any state before COMMITTED may abort to ROLLED_BACK.
"""

import asyncio
import time
from enum import Enum

from ticketing.core.errors import (
    InsufficientInventoryError,
    StorageError,
    TicketNotFoundError,
    ValidationError,
)
from ticketing.core.logging import get_logger
from ticketing.core.metrics import purchase_latency, record_purchase_attempt
from ticketing.models import Purchase
from ticketing.services.cache_service import invalidate_ticket_cache
from ticketing.store import InventoryStore

logger = get_logger(__name__)


class PurchaseState(str, Enum):
    STARTED = "started"
    LOCKED = "locked"
    VALIDATED = "validated"
    DECREMENTED = "decremented"
    RECORDED = "recorded"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def validate_purchase_request(user_id: str, quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("quantity must be an integer >= 1")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("user_id is required")


class PurchaseCoordinator:
    def __init__(self, store: InventoryStore):
        self.store = store

    async def purchase(self, ticket_id: int, user_id: str, quantity: int) -> Purchase:
        try:
            validate_purchase_request(user_id, quantity)
        except ValidationError:
            record_purchase_attempt("invalid")
            raise

        started = time.perf_counter()
        state = PurchaseState.STARTED
        try:
            async with self.store.transaction() as scope:
                allocation = await self.store.lock_ticket_for_update(ticket_id, scope)
                state = PurchaseState.LOCKED

                if allocation < quantity:
                    raise InsufficientInventoryError(ticket_id, quantity, allocation)
                state = PurchaseState.VALIDATED

                await self.store.decrement_allocation(ticket_id, allocation - quantity, scope)
                state = PurchaseState.DECREMENTED

                purchase = await self.store.record_purchase(ticket_id, user_id, quantity, scope)
                state = PurchaseState.RECORDED

                await scope.commit()
                state = PurchaseState.COMMITTED

        except InsufficientInventoryError as e:
            record_purchase_attempt("insufficient")
            logger.warning(
                "purchase_rejected_insufficient",
                ticket_id=ticket_id,
                user_id=user_id,
                requested=e.requested,
                available=e.available,
            )
            raise
        except TicketNotFoundError:
            record_purchase_attempt("not_found")
            logger.warning("purchase_rejected_not_found", ticket_id=ticket_id, user_id=user_id)
            raise
        except (Exception, asyncio.CancelledError) as e:
            # StorageError, cancellation, or anything unexpected
            record_purchase_attempt("error")
            logger.error(
                "purchase_rolled_back",
                ticket_id=ticket_id,
                user_id=user_id,
                quantity=quantity,
                state=PurchaseState.ROLLED_BACK.value,
                failed_after=state.value,
                error=str(e) if isinstance(e, StorageError) else type(e).__name__,
            )
            raise
        finally:
            purchase_latency.observe(time.perf_counter() - started)

        record_purchase_attempt("success")
        logger.info(
            "purchase_committed",
            purchase_id=purchase.id,
            ticket_id=ticket_id,
            user_id=user_id,
            quantity=quantity,
            remaining=allocation - quantity,
        )
        await invalidate_ticket_cache()
        return purchase
