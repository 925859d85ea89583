"""create ticket type table

Revision ID: 3b9c1e7a4d21
Revises:
Create Date: 2026-10-12 09:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b9c1e7a4d21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "ticket_type",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("nickname", sa.String(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column(
            "min_threshold", sa.Integer(), nullable=False, server_default=sa.text("10")
        ),
        sa.Column("default_quantity_per_package", sa.Integer(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=True, server_default=sa.text("true")
        ),
        sa.Column(
            "ticket_category",
            sa.String(),
            nullable=False,
            server_default=sa.text("'custom'"),
        ),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column(
            "amount",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "amount_is_opened",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "version_id", sa.Integer(), nullable=False, server_default=sa.text("1")
        ),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        op.f("ix_public_ticket_type_id"),
        "ticket_type",
        ["id"],
        unique=False,
        schema="public",
    )
    op.create_index(
        op.f("ix_public_ticket_type_code"),
        "ticket_type",
        ["code"],
        unique=True,
        schema="public",
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(
        op.f("ix_public_ticket_type_code"), table_name="ticket_type", schema="public"
    )
    op.drop_index(
        op.f("ix_public_ticket_type_id"), table_name="ticket_type", schema="public"
    )
    op.drop_table("ticket_type", schema="public")
