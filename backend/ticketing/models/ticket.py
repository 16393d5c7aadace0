"""
Ticket model: a named item with a finite purchasable allocation.

Key design decisions:
- `allocation` holds the remaining quantity and is only ever decremented,
  under the ticket's exclusive lock, by the purchase coordinator
- CHECK constraint keeps allocation non-negative at the DB level
"""

from sqlalchemy import CheckConstraint, Column, Integer, String, Text

from ticketing.db.base import Base


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    allocation = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("allocation >= 0", name="check_ticket_allocation_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, name={self.name}, allocation={self.allocation})>"
