"""create consumption_records and processing_logs tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "consumption_records",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("region", sa.String(length=100), nullable=False),
        sa.Column("building_type", sa.String(length=50), nullable=False),
        sa.Column("month", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_consumption", sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source_file", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_consumption_records_region_month",
        "consumption_records",
        ["region", "month"],
        unique=False,
    )
    op.create_index("ix_consumption_records_month", "consumption_records", ["month"], unique=False)

    op.create_table(
        "processing_logs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("month", sa.String(length=20), nullable=False, comment="Period label, YYYY-MM"),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            comment="Started, Downloading, Parsing, Aggregating, Saving, Completed, Failed",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("records_processed", sa.Integer(), nullable=False),
        sa.Column("records_filtered", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processing_logs_started_at", "processing_logs", ["started_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_processing_logs_started_at", table_name="processing_logs")
    op.drop_table("processing_logs")
    op.drop_index("ix_consumption_records_month", table_name="consumption_records")
    op.drop_index("ix_consumption_records_region_month", table_name="consumption_records")
    op.drop_table("consumption_records")
