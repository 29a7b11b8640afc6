"""
Haiku Notes Backend: Note Service (Resource Store)
===================================================

What:  Store operations for the `notes` table: list, detail list, get,
       create, update, delete.
How:   Each operation issues a single statement on the request's session.
       Ownership is part of the WHERE clause; an update or delete whose
       (id, owner_id) pair matches nothing raises NotFoundError and changes
       nothing.
Who:   Called by the note routes with a session from get_db_session.

Ordering:
    Every multi-row read orders by sort_order ascending, then created_at and
    id, so notes that share an order value always come back in the same
    sequence.

Owner-scoped reads:
    get_note() filters by note id AND owner by default. Constructing the
    service with owner_scoped_reads=False restores the id-only lookup, where
    any caller that knows a note id can read it through any user path.
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from haiku_notes.exceptions import NotFoundError
from haiku_notes.identifiers import NoteId, UserId
from haiku_notes.models.note import Note
from haiku_notes.services.base import STORE_FAILURES, StoreService

logger = logging.getLogger(__name__)


class NoteService(StoreService):
    """
    Business logic layer for note operations.

    Stateless apart from the owner_scoped_reads switch, which is fixed when
    the application is built.
    """

    resource = "note"

    def __init__(self, owner_scoped_reads: bool = True):
        self.owner_scoped_reads = owner_scoped_reads

    @staticmethod
    def _ordered_by_owner(user_id: UserId, *columns):
        return (
            select(*columns)
            .where(Note.owner_id == user_id)
            .order_by(Note.order.asc(), Note.created_at.asc(), Note.id.asc())
        )

    async def list_notes(self, db: AsyncSession, user_id: UserId) -> List[NoteId]:
        """
        Ids of every note the user owns, ordered by `order` ascending.

        An unknown user simply owns no notes: the result is an empty list.
        """
        self._require(user=user_id)

        try:
            result = await db.execute(self._ordered_by_owner(user_id, Note.id))
            return [NoteId(note_id) for note_id in result.scalars().all()]
        except STORE_FAILURES as e:
            raise self._store_error("list_notes", e) from e

    async def get_note_detail_list(self, db: AsyncSession, user_id: UserId) -> List[Note]:
        """Same scope and order as list_notes(), returning full rows."""
        self._require(user=user_id)

        try:
            result = await db.execute(self._ordered_by_owner(user_id, Note))
            return list(result.scalars().all())
        except STORE_FAILURES as e:
            raise self._store_error("get_note_detail_list", e) from e

    async def get_note(self, db: AsyncSession, user_id: UserId, note_id: NoteId) -> Note:
        """
        Retrieve a single note.

        Query plan:
            SELECT ... FROM notes WHERE id = :note AND owner_id = :user
            (owner condition dropped when owner_scoped_reads is False)

        Raises:
            NotFoundError: no matching note
        """
        self._require(user=user_id, id=note_id)

        query = select(Note).where(Note.id == note_id)
        if self.owner_scoped_reads:
            query = query.where(Note.owner_id == user_id)

        try:
            result = await db.execute(query)
            note = result.scalar_one_or_none()
        except STORE_FAILURES as e:
            raise self._store_error("get_note", e) from e

        if note is None:
            raise NotFoundError(resource="note")
        return note

    async def create_note(
        self,
        db: AsyncSession,
        user_id: UserId,
        note_id: NoteId,
        text: str,
        order: float,
    ) -> Note:
        """
        Insert a note for `user_id` with a server-generated `note_id`.

        Raises:
            ValidationError: empty user, id or text
            ConflictError: id already taken, or owner does not exist
        """
        self._require(user=user_id, id=note_id, text=text)

        note = Note(id=note_id, owner_id=user_id, text=text, order=order)
        try:
            db.add(note)
            await db.flush()
        except STORE_FAILURES as e:
            raise self._store_error("create_note", e) from e

        logger.info("Note %s... created for user %s...", note_id[:8], user_id[:8])
        return note

    async def update_note(
        self,
        db: AsyncSession,
        user_id: UserId,
        note_id: NoteId,
        text: str,
        order: float,
    ) -> None:
        """
        Replace text and order of the note matching both ids.

        Raises:
            ValidationError: empty user, id or text
            NotFoundError: no note with this id belongs to this user
        """
        self._require(user=user_id, id=note_id, text=text)

        statement = (
            update(Note)
            .where(Note.id == note_id, Note.owner_id == user_id)
            .values({
                Note.text: text,
                Note.order: order,
                Note.updated_at: datetime.now(timezone.utc),
            })
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(statement)
        except STORE_FAILURES as e:
            raise self._store_error("update_note", e) from e

        if result.rowcount == 0:
            raise NotFoundError(resource="note")

    async def delete_note(self, db: AsyncSession, user_id: UserId, note_id: NoteId) -> None:
        """
        Delete the note matching both ids.

        Raises:
            ValidationError: empty user or id
            NotFoundError: no note with this id belongs to this user
        """
        self._require(user=user_id, id=note_id)

        statement = (
            delete(Note)
            .where(Note.id == note_id, Note.owner_id == user_id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(statement)
        except STORE_FAILURES as e:
            raise self._store_error("delete_note", e) from e

        if result.rowcount == 0:
            raise NotFoundError(resource="note")

        logger.info("Note %s... deleted for user %s...", note_id[:8], user_id[:8])
