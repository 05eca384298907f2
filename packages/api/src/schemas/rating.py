# This project was developed with assistance from AI tools.
"""Rating request/response schemas."""

from datetime import datetime

from db.enums import RaterRole
from pydantic import BaseModel, ConfigDict, Field


class RatingCreate(BaseModel):
    """Score (1-5) and optional review for the other side of a rental."""

    rating: int = Field(ge=1, le=5)
    review: str | None = Field(default=None, max_length=2000)


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rental_request_id: int
    listing_id: int
    rater_user_id: str
    rated_user_id: str
    rater_role: RaterRole
    rating: int
    review: str | None = None
    created_at: datetime
    updated_at: datetime


class RatingListResponse(BaseModel):
    data: list[RatingResponse]


class ListingRatingSummary(BaseModel):
    """Renter ratings for one listing, newest first."""

    listing_id: int
    count: int
    average: float | None = None
    data: list[RatingResponse]
