"""
Haiku Notes Backend: Store Service Base
========================================

What:  Shared behaviour of the resource store services: argument checks and
       translation of database failures into tagged application errors.
Who:   Subclassed by UserService and NoteService.

Failure Tagging:
    IntegrityError                              → ConflictError          (409)
    OperationalError / InterfaceError /
    invalidated connection / pool timeout /
    OSError from the driver                     → DatabaseConnectionError (503)
    any other SQLAlchemyError                   → DatabaseError           (500)

    "No such row" is not a database failure; each service raises
    NotFoundError itself when a lookup or owner-scoped write matches nothing.
"""

import logging
from typing import Any

from sqlalchemy import exc as sa_exc

from haiku_notes.exceptions import (
    ConflictError,
    DatabaseConnectionError,
    DatabaseError,
    HaikuNotesError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Exceptions to catch around every statement
STORE_FAILURES = (sa_exc.SQLAlchemyError, OSError)

_CONNECTION_FAILURES = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
    OSError,
)


class StoreService:
    """Base class for services that own one table each."""

    resource: str = "resource"

    @staticmethod
    def _require(**fields: str) -> None:
        """
        Reject empty identifier or text arguments before any SQL runs.

        Raises:
            ValidationError: naming the first empty argument.
        """
        for name, value in fields.items():
            if not value:
                raise ValidationError(message=f"{name} is empty", field=name)

    def _store_error(self, operation: str, error: Exception, **context: Any) -> HaikuNotesError:
        """
        Build the application error for a failed statement.

        Returns the exception instead of raising it so callers can write
        `raise self._store_error(...) from e` and keep the cause chained.
        """
        ctx = {"operation": operation, "error_type": type(error).__name__, **context}

        if isinstance(error, sa_exc.IntegrityError):
            logger.warning("Constraint violation in %s: %s", operation, error.orig)
            return ConflictError(
                message=f"Could not store {self.resource}: it conflicts with existing data",
                context=ctx,
            )

        connection_lost = isinstance(error, _CONNECTION_FAILURES) or (
            isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated
        )
        if connection_lost:
            logger.error("Database unreachable during %s: %s", operation, error)
            return DatabaseConnectionError(context=ctx)

        logger.error("Database error during %s: %s", operation, error, exc_info=True)
        return DatabaseError(context=ctx)
