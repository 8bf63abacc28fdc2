"""
Pydantic schemas for location reviews.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ReviewCreateRequest(BaseModel):
    recommended: bool
    comment: str | None = Field(default=None, max_length=5000)
    email: str | None = Field(default=None, max_length=320)
    # Hidden form field; humans leave it empty.
    honeypot: str | None = Field(default=None, max_length=1000)
