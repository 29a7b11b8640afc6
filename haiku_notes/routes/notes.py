"""
Haiku Notes Backend: Notes Route Handlers
==========================================

What:  CRUD endpoints for a user's notes.
How:   Path identifiers are validated by dependencies, bodies go through the
       strict decoder, payload rules are checked here, and the NoteService
       does the storage. Failures are raised as application exceptions and
       rendered by the global handlers in main.py.

Endpoints:
    GET    /user/{user}/notes          → 200 {"notes": [id, ...]}
    GET    /user/{user}/notes/detail   → 200 {"notes": [Note, ...]}
    POST   /user/{user}/notes          → 201 Note
    GET    /user/{user}/note/{note}    → 200 Note
    PUT    /user/{user}/note/{note}    → 200, empty body
    DELETE /user/{user}/note/{note}    → 200, empty body
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from haiku_notes.database import get_db_session
from haiku_notes.exceptions import ValidationError
from haiku_notes.identifiers import NoteId, UserId, generate_id
from haiku_notes.routes.dependencies import (
    decode_request_body,
    get_note_service,
    note_id_param,
    user_id_param,
)
from haiku_notes.schemas.note import (
    ErrorResponse,
    NoteDetailListResponse,
    NoteListResponse,
    NotePayload,
    NoteResponse,
)
from haiku_notes.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user/{user}", tags=["Notes"])

_BAD_REQUEST = {"description": "Invalid identifier or body", "model": ErrorResponse}
_NOT_FOUND = {"description": "Note not found for this user", "model": ErrorResponse}
_SERVER_ERROR = {"description": "Store failure", "model": ErrorResponse}


@router.get(
    "/notes",
    response_model=NoteListResponse,
    responses={400: _BAD_REQUEST, 500: _SERVER_ERROR},
    summary="List a user's note ids in order",
)
async def list_notes(
    user_id: UserId = Depends(user_id_param),
    db: AsyncSession = Depends(get_db_session),
    notes: NoteService = Depends(get_note_service),
) -> NoteListResponse:
    note_ids = await notes.list_notes(db, user_id)
    return NoteListResponse(notes=note_ids)


@router.get(
    "/notes/detail",
    response_model=NoteDetailListResponse,
    responses={400: _BAD_REQUEST, 500: _SERVER_ERROR},
    summary="List a user's notes in order, with full details",
)
async def list_note_details(
    user_id: UserId = Depends(user_id_param),
    db: AsyncSession = Depends(get_db_session),
    notes: NoteService = Depends(get_note_service),
) -> NoteDetailListResponse:
    rows = await notes.get_note_detail_list(db, user_id)
    return NoteDetailListResponse(
        notes=[NoteResponse.model_validate(row) for row in rows],
    )


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteResponse,
    responses={
        400: _BAD_REQUEST,
        409: {"description": "Identifier collision or unknown user", "model": ErrorResponse},
        413: {"description": "Body larger than 1MB", "model": ErrorResponse},
        415: {"description": "Content-Type is not application/json", "model": ErrorResponse},
        500: _SERVER_ERROR,
    },
    summary="Create a note",
    description=(
        'Body: {"text": string, "order": number}. The id is generated by the '
        "server; a request that supplies one is rejected."
    ),
)
async def create_note(
    request: Request,
    user_id: UserId = Depends(user_id_param),
    db: AsyncSession = Depends(get_db_session),
    notes: NoteService = Depends(get_note_service),
) -> NoteResponse:
    payload = await decode_request_body(request, NotePayload)

    if payload.id:
        raise ValidationError(message="Cannot create note with a specific id", field="id")
    if not payload.text:
        raise ValidationError(message="Cannot create note without data", field="text")

    note_id = NoteId(generate_id())
    note = await notes.create_note(db, user_id, note_id, payload.text, payload.order)
    return NoteResponse.model_validate(note)


@router.get(
    "/note/{note}",
    response_model=NoteResponse,
    responses={400: _BAD_REQUEST, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Get a single note",
)
async def get_note(
    user_id: UserId = Depends(user_id_param),
    note_id: NoteId = Depends(note_id_param),
    db: AsyncSession = Depends(get_db_session),
    notes: NoteService = Depends(get_note_service),
) -> NoteResponse:
    note = await notes.get_note(db, user_id, note_id)
    return NoteResponse.model_validate(note)


@router.put(
    "/note/{note}",
    response_class=Response,
    responses={
        200: {"description": "Note updated, empty body"},
        400: _BAD_REQUEST,
        404: _NOT_FOUND,
        413: {"description": "Body larger than 1MB", "model": ErrorResponse},
        415: {"description": "Content-Type is not application/json", "model": ErrorResponse},
        500: _SERVER_ERROR,
    },
    summary="Replace a note's text and order",
    description=(
        'Body: {"id": string, "text": string, "order": number}. The id must '
        "equal the note id in the path."
    ),
)
async def update_note(
    request: Request,
    user_id: UserId = Depends(user_id_param),
    note_id: NoteId = Depends(note_id_param),
    db: AsyncSession = Depends(get_db_session),
    notes: NoteService = Depends(get_note_service),
) -> Response:
    payload = await decode_request_body(request, NotePayload)

    if payload.id != note_id:
        raise ValidationError(
            message="payload id does not correspond to endpoint id",
            field="id",
        )
    if not payload.text:
        raise ValidationError(message="Cannot update note without data", field="text")

    await notes.update_note(db, user_id, note_id, payload.text, payload.order)
    return Response(status_code=200)


@router.delete(
    "/note/{note}",
    response_class=Response,
    responses={
        200: {"description": "Note deleted, empty body"},
        400: _BAD_REQUEST,
        404: _NOT_FOUND,
        500: _SERVER_ERROR,
    },
    summary="Delete a note",
)
async def delete_note(
    user_id: UserId = Depends(user_id_param),
    note_id: NoteId = Depends(note_id_param),
    db: AsyncSession = Depends(get_db_session),
    notes: NoteService = Depends(get_note_service),
) -> Response:
    await notes.delete_note(db, user_id, note_id)
    return Response(status_code=200)
