"""
Pydantic schemas for listing claims and problem reports.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ClaimRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)


class FeedbackRequest(BaseModel):
    feedback: str = Field(..., min_length=1, max_length=5000)
    email: str | None = Field(default=None, max_length=320)
