"""
Pydantic schemas for admin moderation.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ReviewStatus = Literal["pending", "approved", "rejected"]


class LocationStatusUpdate(BaseModel):
    review_status: ReviewStatus
    # True: moderate the location's "open 24 hours" listing instead of the location itself.
    open_24_hours: bool = False


class ReviewStatusUpdate(BaseModel):
    status: ReviewStatus
