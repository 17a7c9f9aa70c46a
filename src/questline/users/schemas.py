"""Request/response schemas for user accounts."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from questline.schemas import CamelModel


class UserCreate(CamelModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=8, max_length=128)


class UserResponse(CamelModel):
    """Public view of an account. The password hash never leaves the service."""

    id: str
    username: str
    created_at: datetime
