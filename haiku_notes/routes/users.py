"""
Haiku Notes Backend: User Route Handlers
=========================================

What:  Create a user and read one back.
How:   The server generates every user id; clients never choose one.

Endpoints:
    POST /user          → 201 User
    GET  /user/{user}   → 200 User
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from haiku_notes.database import get_db_session
from haiku_notes.identifiers import UserId, generate_id
from haiku_notes.routes.dependencies import get_user_service, user_id_param
from haiku_notes.schemas.note import ErrorResponse
from haiku_notes.schemas.user import UserResponse
from haiku_notes.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Users"])


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    responses={
        409: {"description": "Generated id already taken", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Create a user",
)
async def create_user(
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.create_user(db, UserId(generate_id()))
    return UserResponse.model_validate(user)


@router.get(
    "/{user}",
    response_model=UserResponse,
    responses={
        400: {"description": "Malformed user id", "model": ErrorResponse},
        404: {"description": "No such user", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Get a user",
)
async def get_user(
    user_id: UserId = Depends(user_id_param),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.get_user(db, user_id)
    return UserResponse.model_validate(user)
