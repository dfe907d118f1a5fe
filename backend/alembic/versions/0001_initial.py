"""initial scheduling schema

Revision ID: 0001
Revises:
Create Date: 2025-03-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "session_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("builder_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.Text(), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_session_types_builder_id", "session_types", ["builder_id"])

    op.create_table(
        "availability_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("builder_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Text(), nullable=False),
        sa.Column("end_time", sa.Text(), nullable=False),
        sa.Column("timezone", sa.Text()),
        sa.Column("effective_date", sa.Text()),
        sa.Column("expiration_date", sa.Text()),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_availability_rules_builder_id", "availability_rules", ["builder_id"])

    op.create_table(
        "availability_exceptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("builder_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("is_available", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_time", sa.Text()),
        sa.Column("end_time", sa.Text()),
        sa.Column("reason", sa.Text()),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index(
        "ix_availability_exceptions_builder_date",
        "availability_exceptions",
        ["builder_id", "date"],
    )

    op.create_table(
        "scheduling_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("builder_id", sa.Integer(), nullable=False, unique=True),
        sa.Column("timezone", sa.Text(), nullable=False, server_default=sa.text("'UTC'")),
        sa.Column("min_notice_minutes", sa.Integer(), nullable=False, server_default=sa.text("60")),
        sa.Column("max_advance_days", sa.Integer(), server_default=sa.text("30")),
        sa.Column("buffer_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_accepting_bookings", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("builder_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("session_type_id", sa.Integer(), sa.ForeignKey("session_types.id"), nullable=False),
        sa.Column("date_start", sa.Text(), nullable=False),
        sa.Column("date_end", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("notes", sa.Text()),
        sa.Column("cancel_reason", sa.Text()),
        sa.Column("created_at", sa.Text(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.Text(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_bookings_builder_start", "bookings", ["builder_id", "date_start"])
    op.create_index(
        "uq_bookings_builder_start_active",
        "bookings",
        ["builder_id", "date_start"],
        unique=True,
        sqlite_where=sa.text("status != 'cancelled'"),
        postgresql_where=sa.text("status != 'cancelled'"),
    )


def downgrade():
    op.drop_index("uq_bookings_builder_start_active", table_name="bookings")
    op.drop_index("ix_bookings_builder_start", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("scheduling_settings")
    op.drop_index("ix_availability_exceptions_builder_date", table_name="availability_exceptions")
    op.drop_table("availability_exceptions")
    op.drop_index("ix_availability_rules_builder_id", table_name="availability_rules")
    op.drop_table("availability_rules")
    op.drop_index("ix_session_types_builder_id", table_name="session_types")
    op.drop_table("session_types")
