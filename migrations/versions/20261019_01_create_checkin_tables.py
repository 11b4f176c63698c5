"""create check-in tables

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("check_in_time", sa.String(length=8), nullable=True),
        sa.Column("checkin_pause_end_date", sa.DateTime(timezone=False), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "emergency_contacts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index(
        "ix_emergency_contacts_user_priority", "emergency_contacts", ["user_id", "priority"]
    )
    op.create_table(
        "check_ins",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("initial_sms_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("escalated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "check_in_date", name="uq_check_ins_user_day"),
    )
    op.create_index(
        "ix_check_ins_phone_scheduled", "check_ins", ["phone_number", "scheduled_for"]
    )
    op.create_index("ix_check_ins_status", "check_ins", ["status"])
    op.create_table(
        "responses",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("responses")
    op.drop_index("ix_check_ins_status", table_name="check_ins")
    op.drop_index("ix_check_ins_phone_scheduled", table_name="check_ins")
    op.drop_table("check_ins")
    op.drop_index("ix_emergency_contacts_user_priority", table_name="emergency_contacts")
    op.drop_table("emergency_contacts")
    op.drop_table("profiles")
