"""
Admin session request/response models.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class AdminLogin(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class SessionToken(BaseModel):
    refresh_token: str = Field(..., min_length=20)


class AdminLogout(BaseModel):
    # Omitted: every session of the calling admin ends.
    refresh_token: str | None = Field(default=None, min_length=20)


class AdminProfile(BaseModel):
    id: int
    email: str
    is_active: bool
    created_at: datetime


class AdminTokens(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AdminSession(BaseModel):
    admin: AdminProfile
    tokens: AdminTokens
