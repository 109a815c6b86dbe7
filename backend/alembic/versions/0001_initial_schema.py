"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the parish reservation service:
masses, reservations, activity_records.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- masses ---
    op.create_table(
        "masses",
        sa.Column("mass_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(500), nullable=False),
        sa.Column("intention_capacity_total", sa.Integer, nullable=False, server_default="0"),
        sa.Column("intention_capacity_remaining", sa.Integer, nullable=False, server_default="0"),
        sa.Column("thanksgiving_capacity_total", sa.Integer, nullable=False, server_default="0"),
        sa.Column("thanksgiving_capacity_remaining", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="AVAILABLE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "intention_capacity_remaining >= 0",
            name="ck_masses_intention_remaining_non_negative",
        ),
        sa.CheckConstraint(
            "intention_capacity_remaining <= intention_capacity_total",
            name="ck_masses_intention_remaining_lte_total",
        ),
        sa.CheckConstraint(
            "thanksgiving_capacity_remaining >= 0",
            name="ck_masses_thanksgiving_remaining_non_negative",
        ),
        sa.CheckConstraint(
            "thanksgiving_capacity_remaining <= thanksgiving_capacity_total",
            name="ck_masses_thanksgiving_remaining_lte_total",
        ),
    )
    op.create_index("ix_masses_scheduled_at", "masses", ["scheduled_at"])

    # --- reservations ---
    op.create_table(
        "reservations",
        sa.Column("reservation_id", sa.String(36), primary_key=True),
        sa.Column("mass_id", sa.String(36), sa.ForeignKey("masses.mass_id"), nullable=False),
        sa.Column("requester_id", sa.String(36), nullable=False),
        sa.Column("requester_name", sa.String(255), nullable=True),
        sa.Column("pool", sa.String(20), nullable=False),  # intention, thanksgiving
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("payload", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_reservations_requester_id", "reservations", ["requester_id"])
    op.create_index("ix_reservations_mass_pool", "reservations", ["mass_id", "pool"])

    # --- activity_records ---
    op.create_table(
        "activity_records",
        sa.Column("activity_id", sa.String(36), primary_key=True),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("audience", sa.String(10), nullable=False),  # self, admin
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_activity_records_actor_audience", "activity_records", ["actor_id", "audience"],
    )


def downgrade() -> None:
    op.drop_index("ix_activity_records_actor_audience", table_name="activity_records")
    op.drop_table("activity_records")
    op.drop_index("ix_reservations_mass_pool", table_name="reservations")
    op.drop_index("ix_reservations_requester_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_index("ix_masses_scheduled_at", table_name="masses")
    op.drop_table("masses")
