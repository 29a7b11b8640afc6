"""
Haiku Notes Backend: User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   UserService inserts and reads rows; Note.owner_id references the key.

Table Design:
    - id: 128-character server-generated token (see identifiers.py)
    - username / email: carried by the entity, left empty by user creation
    - created_at / updated_at: UTC, timezone-aware
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from haiku_notes.database import Base
from haiku_notes.identifiers import ID_LENGTH


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A note owner. Created by POST /user, never updated or deleted."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        primary_key=True,
        comment="Server-generated 128-character identifier",
    )

    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        server_default=text("''"),
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        server_default=text("''"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id[:8]}..., created_at='{self.created_at}')>"
