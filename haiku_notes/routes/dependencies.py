"""
Haiku Notes Backend: Route Dependencies
========================================

What:  FastAPI dependencies shared by the route modules: validated path
       identifiers, the services built by create_app(), and the strict body
       decoder bound to the configured read timeout.
"""

import logging
from typing import Type

from fastapi import Path, Request

from haiku_notes.decoding import MAX_BODY_BYTES, ModelT, decode_body
from haiku_notes.exceptions import ValidationError
from haiku_notes.identifiers import ID_LENGTH, NoteId, UserId, is_valid_id
from haiku_notes.services.note_service import NoteService
from haiku_notes.services.user_service import UserService

logger = logging.getLogger(__name__)


def _checked_identifier(name: str, value: str) -> str:
    if not value:
        raise ValidationError(message=f"Missing {name} id", field=name)
    if not is_valid_id(value):
        raise ValidationError(
            message=f"Invalid {name} id: expected {ID_LENGTH} URL-safe characters",
            field=name,
            context={"length": len(value)},
        )
    return value


def user_id_param(
    user: str = Path(..., description="128-character user identifier"),
) -> UserId:
    """Path parameter {user}, rejected with 400 unless it is a well-formed id."""
    return UserId(_checked_identifier("user", user))


def note_id_param(
    note: str = Path(..., description="128-character note identifier"),
) -> NoteId:
    """Path parameter {note}, rejected with 400 unless it is a well-formed id."""
    return NoteId(_checked_identifier("note", note))


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def decode_request_body(request: Request, model: Type[ModelT]) -> ModelT:
    """Run the strict decoder over the request body with the API read timeout."""
    settings = request.app.state.settings
    return await decode_body(
        content_type=request.headers.get("content-type"),
        body_stream=request.stream(),
        model=model,
        size_limit=MAX_BODY_BYTES,
        read_timeout=settings.api.read_timeout,
        content_length=request.headers.get("content-length"),
    )
