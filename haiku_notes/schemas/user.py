"""
Haiku Notes Backend: User Schemas
==================================

What:  Response model for POST /user and GET /user/{user}.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """Full representation of a user."""

    id: str = Field(description="128-character user identifier")
    username: str = Field(default="", description="Display name, empty unless set")
    email: str = Field(default="", description="Contact address, empty unless set")
    created_at: datetime = Field(description="When the user was created (RFC 3339)")
    updated_at: datetime = Field(description="When the user was last changed (RFC 3339)")

    model_config = ConfigDict(from_attributes=True)
