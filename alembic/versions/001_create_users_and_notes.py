"""Create users and notes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `users` and `notes`. A note belongs to exactly one user and
       is removed with it (ON DELETE CASCADE).
How:   128-character string primary keys generated by the application;
       TIMESTAMP WITH TIME ZONE for created/updated times.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), nullable=False, comment="Server-generated identifier"),
        sa.Column("username", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "notes",
        sa.Column("id", sa.String(128), nullable=False, comment="Server-generated identifier"),
        sa.Column("owner_id", sa.String(128), nullable=False, comment="Owning user"),
        sa.Column("data", sa.Text(), nullable=False, comment="Note body"),
        sa.Column(
            "sort_order",
            sa.Float(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Ascending presentation order among the owner's notes",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
    )

    # Ordered listing of one user's notes
    op.create_index("idx_notes_owner_sort_order", "notes", ["owner_id", "sort_order"])


def downgrade() -> None:
    op.drop_index("idx_notes_owner_sort_order", table_name="notes")
    op.drop_table("notes")
    op.drop_table("users")
