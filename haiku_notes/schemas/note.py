"""
Haiku Notes Backend: Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract for notes, plus the shared
       error and health envelopes.
How:   Response models are serialised by FastAPI (`response_model=`).
       The request payload is NOT parsed by FastAPI: routes hand it to the
       strict decoder in haiku_notes.decoding, which validates it in strict
       JSON mode and rejects unknown fields.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models: what clients send in a body
# ══════════════════════════════════════════════════════════════════════════


class NotePayload(BaseModel):
    """
    Body of POST /user/{user}/notes and PUT /user/{user}/note/{note}.

    Mirrors the Note response shape so a client can send a fetched note back
    with only its text or order changed. created_at and updated_at are
    accepted and ignored; the store owns them. `order` must be finite, so a
    literal that overflows a double (1e400) is rejected like a wrong type.

    Rules checked by the routes, not by the schema:
        - create: id must be empty, text must be non-empty
        - update: id must equal the endpoint's note id, text must be non-empty
    """

    id: str = Field(default="", description="Note identifier; empty on create")
    text: str = Field(default="", description="Note body")
    order: float = Field(default=0.0, description="Ascending presentation order")
    created_at: Optional[datetime] = Field(default=None, description="Ignored")
    updated_at: Optional[datetime] = Field(default=None, description="Ignored")

    model_config = ConfigDict(extra="forbid", strict=True, allow_inf_nan=False)


# ══════════════════════════════════════════════════════════════════════════
# Response Models: what the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """Full representation of a note, returned by get and create."""

    id: str = Field(description="128-character note identifier")
    text: str = Field(description="Note body")
    order: float = Field(description="Ascending presentation order")
    created_at: datetime = Field(description="When the note was created (RFC 3339)")
    updated_at: datetime = Field(description="When the note was last changed (RFC 3339)")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Backends without zone support (SQLite) hand back naive UTC values."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class NoteListResponse(BaseModel):
    """GET /user/{user}/notes: note ids in ascending order."""

    notes: List[str] = Field(description="Note ids ordered by `order` ascending")


class NoteDetailListResponse(BaseModel):
    """GET /user/{user}/notes/detail: full notes in ascending order."""

    notes: List[NoteResponse] = Field(description="Notes ordered by `order` ascending")


# ══════════════════════════════════════════════════════════════════════════
# Shared envelopes
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "malformed_body",
            "message": "Request body contains unknown field \\"extra\\"",
            "details": {"field": "extra"},
            "request_id": "1a2b3c4d"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """GET /health: service and database status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
