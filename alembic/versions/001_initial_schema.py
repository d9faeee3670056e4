"""Initial schema — engineers, tickets, attendance and service history.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Engineers (all staff roles live here)
    op.create_table(
        "engineers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), unique=True, nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="engineer"),
        sa.Column("availability", sa.String(10), nullable=False, server_default="offline"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_checked_in", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_check_in", sa.DateTime, nullable=True),
        sa.Column("last_check_out", sa.DateTime, nullable=True),
        sa.Column("daily_first_check_in", sa.DateTime, nullable=True),
        sa.Column("daily_last_check_out", sa.DateTime, nullable=True),
        sa.Column("daily_total_work_minutes", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_engineers_role_active", "engineers", ["role", "is_active"])
    op.create_index("idx_engineers_checked_in", "engineers", ["is_checked_in"])

    # Engineer skills
    op.create_table(
        "engineer_skills",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "engineer_id",
            sa.Integer,
            sa.ForeignKey("engineers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("level", sa.String(20), nullable=False, server_default="novice"),
        sa.Column("years_experience", sa.Float, nullable=False, server_default="0"),
    )
    op.create_index("idx_engineer_skills_engineer", "engineer_skills", ["engineer_id"])

    # Customers
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("contact_person", sa.String(200), nullable=True),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("city", sa.String(200), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("service_no", sa.String(50), nullable=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )

    # Machines
    op.create_table(
        "machines",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("model", sa.String(200), nullable=False),
        sa.Column("serial_number", sa.String(100), unique=True, nullable=False),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("customers.id"), nullable=True),
    )

    # Tickets
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("display_id", sa.String(50), unique=True, nullable=False),
        sa.Column("problem", sa.Text, nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column(
            "issue_categories", ARRAY(sa.String(100)), nullable=False, server_default="{}"
        ),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("machine_id", sa.Integer, sa.ForeignKey("machines.id"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("assigned_to", sa.Integer, sa.ForeignKey("engineers.id"), nullable=True),
        sa.Column("assigned_by", sa.Integer, nullable=True),
        sa.Column("assigned_at", sa.DateTime, nullable=True),
        sa.Column("started_at", sa.DateTime, nullable=True),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("closed_at", sa.DateTime, nullable=True),
        sa.Column("work_performed", sa.Text, nullable=True),
        sa.Column("solution_notes", sa.Text, nullable=True),
        sa.Column(
            "spares_used", ARRAY(sa.String(200)), nullable=False, server_default="{}"
        ),
        sa.Column("created_by", sa.Integer, nullable=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint(
            "(status = 'pending') = (assigned_to IS NULL)",
            name="ck_tickets_pending_unassigned",
        ),
    )
    op.create_index("idx_tickets_status", "tickets", ["status"])
    op.create_index("idx_tickets_assigned_to", "tickets", ["assigned_to"])
    op.create_index("idx_tickets_machine", "tickets", ["machine_id"])

    # Daily work records
    op.create_table(
        "daily_work_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "engineer_id",
            sa.Integer,
            sa.ForeignKey("engineers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("work_date", sa.Date, nullable=False),
        sa.Column("first_check_in", sa.DateTime, nullable=True),
        sa.Column("last_check_out", sa.DateTime, nullable=True),
        sa.Column("total_work_minutes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("log", JSONB, nullable=False, server_default="[]"),
        sa.Column(
            "updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint("engineer_id", "work_date", name="uq_daily_work_engineer_date"),
    )
    op.create_index("idx_daily_work_date", "daily_work_records", ["work_date"])

    # Service history
    op.create_table(
        "service_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ticket_id",
            sa.Integer,
            sa.ForeignKey("tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("machine_id", sa.Integer, sa.ForeignKey("machines.id"), nullable=True),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("engineer_id", sa.Integer, sa.ForeignKey("engineers.id"), nullable=True),
        sa.Column("work_performed", sa.Text, nullable=True),
        sa.Column("solution_notes", sa.Text, nullable=True),
        sa.Column(
            "spares_used", ARRAY(sa.String(200)), nullable=False, server_default="{}"
        ),
        sa.Column("recorded_by", sa.Integer, nullable=True),
        sa.Column(
            "recorded_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_service_history_machine", "service_history", ["machine_id"])
    op.create_index("idx_service_history_ticket", "service_history", ["ticket_id"])


def downgrade() -> None:
    op.drop_table("service_history")
    op.drop_table("daily_work_records")
    op.drop_table("tickets")
    op.drop_table("machines")
    op.drop_table("customers")
    op.drop_table("engineer_skills")
    op.drop_table("engineers")
