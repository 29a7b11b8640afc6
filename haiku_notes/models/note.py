"""
Haiku Notes Backend: Note SQLAlchemy Model
===========================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - id: 128-character server-generated token, primary key
    - owner_id: foreign key to users.id; every note belongs to exactly one user
    - data: the note text (attribute `text`), never empty
    - sort_order: float presentation key (attribute `order`)
    - created_at / updated_at: UTC, timezone-aware; updated_at moves on every update

    Index on (owner_id, sort_order):
        Serves "list this user's notes in order", the only multi-row query.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column

from haiku_notes.database import Base
from haiku_notes.identifiers import ID_LENGTH


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user's note.

    Lifecycle:
        1. Created by POST /user/{user}/notes with a generated id
        2. Text and order replaced by PUT (id and owner never change)
        3. Removed by DELETE, only when the owner matches

    Query Patterns:
        - List: SELECT ... WHERE owner_id = :user ORDER BY sort_order
        - Get:  SELECT ... WHERE id = :note [AND owner_id = :user]
        - Update/Delete: ... WHERE id = :note AND owner_id = :user
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        primary_key=True,
        comment="Server-generated 128-character identifier",
    )

    owner_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning user",
    )

    text: Mapped[str] = mapped_column(
        "data",
        Text,
        nullable=False,
        comment="Note body, never empty",
    )

    order: Mapped[float] = mapped_column(
        "sort_order",
        Float,
        nullable=False,
        default=0.0,
        server_default=sql_text("0"),
        comment="Ascending presentation order among the owner's notes",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_owner_sort_order", "owner_id", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id[:8]}..., order={self.order})>"
