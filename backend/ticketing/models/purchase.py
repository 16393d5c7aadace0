"""
Purchase model: an immutable record of a quantity bought against a ticket.
Rows are inserted in the same transaction that decrements the ticket's
allocation and are never updated afterwards.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String

from ticketing.db.base import Base, TimestampMixin


class Purchase(Base, TimestampMixin):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Fetch created_at on INSERT so the returned row is complete after the session closes
    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_purchase_quantity_positive"),
    )

    def __repr__(self) -> str:
        return f"<Purchase(id={self.id}, ticket={self.ticket_id}, user={self.user_id}, qty={self.quantity})>"
