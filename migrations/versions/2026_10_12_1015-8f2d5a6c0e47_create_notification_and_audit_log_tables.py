"""create notification and audit log tables

Revision ID: 8f2d5a6c0e47
Revises: 3b9c1e7a4d21
Create Date: 2026-10-12 10:15:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "8f2d5a6c0e47"
down_revision: Union[str, None] = "3b9c1e7a4d21"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "notification",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("ticket_type_id", sa.UUID(), nullable=False),
        sa.Column("ticket_name", sa.String(), nullable=False),
        sa.Column("kiosk_id", sa.String(), nullable=True),
        sa.Column("notification_type", sa.String(), nullable=False),
        sa.Column("current_quantity", sa.Integer(), nullable=False),
        sa.Column("threshold", sa.Integer(), nullable=False),
        sa.Column(
            "is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_date", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["ticket_type_id"], ["public.ticket_type.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        op.f("ix_public_notification_ticket_type_id"),
        "notification",
        ["ticket_type_id"],
        unique=False,
        schema="public",
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("actor_name", sa.String(), nullable=True),
        sa.Column("target_id", sa.String(), nullable=True),
        sa.Column("target_type", sa.String(), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("kiosk_id", sa.String(), nullable=True),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        op.f("ix_public_audit_log_target_id"),
        "audit_log",
        ["target_id"],
        unique=False,
        schema="public",
    )
    op.create_index(
        op.f("ix_public_audit_log_action"),
        "audit_log",
        ["action"],
        unique=False,
        schema="public",
    )
    op.create_index(
        op.f("ix_public_audit_log_kiosk_id"),
        "audit_log",
        ["kiosk_id"],
        unique=False,
        schema="public",
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(
        op.f("ix_public_audit_log_kiosk_id"), table_name="audit_log", schema="public"
    )
    op.drop_index(
        op.f("ix_public_audit_log_action"), table_name="audit_log", schema="public"
    )
    op.drop_index(
        op.f("ix_public_audit_log_target_id"), table_name="audit_log", schema="public"
    )
    op.drop_table("audit_log", schema="public")
    op.drop_index(
        op.f("ix_public_notification_ticket_type_id"),
        table_name="notification",
        schema="public",
    )
    op.drop_table("notification", schema="public")
