# This project was developed with assistance from AI tools.
"""Listing request/response schemas."""

from datetime import datetime
from decimal import Decimal

from db.enums import ListingRentalStatus
from pydantic import BaseModel, ConfigDict, Field

from . import Pagination


class ListingCreate(BaseModel):
    """Create a new listing owned by the caller."""

    category: str = Field(min_length=1, max_length=50)
    subcategory: str | None = Field(default=None, max_length=50)
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price_per_day: Decimal = Field(gt=0)
    address: str = Field(min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class AvailabilityUpdate(BaseModel):
    """Owner toggle for accepting new requests."""

    is_available: bool


class ListingResponse(BaseModel):
    """Single listing response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_user_id: str
    category: str
    subcategory: str | None = None
    title: str
    description: str | None = None
    price_per_day: Decimal
    address: str
    latitude: float | None = None
    longitude: float | None = None
    is_available: bool
    rental_status: ListingRentalStatus
    created_at: datetime
    updated_at: datetime


class ListingListResponse(BaseModel):
    """Paginated list of listings."""

    data: list[ListingResponse]
    pagination: Pagination


class Category(BaseModel):
    slug: str
    label: str
    subcategories: list[str] = []
