"""Initial schema: products, settings, submissions, audit events

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Product catalog: internal id → FDA product code
    op.create_table(
        "products",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("nickname", sa.String(200), nullable=False),
        sa.Column("product_code", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Operator filing defaults, flat key → value
    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "submissions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_name", sa.String(100), nullable=False),
        sa.Column("tracking_number", sa.String(100), nullable=False),
        sa.Column("document_id", sa.String(200), nullable=True),
        sa.Column("format_version", sa.String(20), nullable=True),
        sa.Column("pnc_number", sa.String(100), nullable=True),
        sa.Column(
            "status",
            sa.Enum("submitted", "failed", "pnc_received", name="submission_status"),
            nullable=False,
            server_default="submitted",
        ),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("pnc_retrieved_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("order_name", "tracking_number", name="uq_submissions_order_tracking"),
    )
    op.create_index("ix_submissions_status_submitted_at", "submissions", ["status", "submitted_at"])
    op.create_index("ix_submissions_submitted_at", "submissions", ["submitted_at"])

    op.create_table(
        "audit_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=True),
        sa.Column("entity_id", UUID(as_uuid=True), nullable=True),
        sa.Column("actor", sa.String(200), nullable=False, server_default="system"),
        sa.Column("event_data", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_events_event_type", "audit_events", ["event_type"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_event_type", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_submissions_submitted_at", table_name="submissions")
    op.drop_index("ix_submissions_status_submitted_at", table_name="submissions")
    op.drop_table("submissions")
    sa.Enum(name="submission_status").drop(op.get_bind(), checkfirst=True)
    op.drop_table("settings")
    op.drop_table("products")
