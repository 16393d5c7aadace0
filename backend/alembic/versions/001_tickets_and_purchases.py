"""Tickets and purchases with allocation and quantity checks.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("allocation", sa.Integer(), nullable=False),
        sa.CheckConstraint("allocation >= 0", name="check_ticket_allocation_non_negative"),
    )

    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ticket_id", sa.Integer(), sa.ForeignKey("tickets.id"), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="check_purchase_quantity_positive"),
    )
    # Purchase history and invariant checks filter by ticket
    op.create_index("ix_purchases_ticket_id", "purchases", ["ticket_id"])


def downgrade() -> None:
    op.drop_index("ix_purchases_ticket_id", table_name="purchases")
    op.drop_table("purchases")
    op.drop_table("tickets")
