# This project was developed with assistance from AI tools.
"""Rental request request/response schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from db.enums import PaymentStatus, RentalRequestStatus
from pydantic import BaseModel, ConfigDict, Field, model_validator


class RentalRequestCreate(BaseModel):
    """Renter's proposal for a date range on a listing."""

    listing_id: int
    start_date: date
    end_date: date
    message: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def end_after_start(self) -> "RentalRequestCreate":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class RentalRequestDecision(BaseModel):
    """Owner's decision on a pending request."""

    status: Literal["approved", "denied"]
    reason: str | None = Field(default=None, max_length=2000)


class RentalRequestResponse(BaseModel):
    """Single rental request response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    listing_id: int
    renter_user_id: str
    start_date: date
    end_date: date
    total_days: int
    total_price: Decimal
    message: str | None = None
    status: RentalRequestStatus
    payment_status: PaymentStatus | None = None
    denial_reason: str | None = None
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    renter_return_confirmed_at: datetime | None = None
    owner_return_confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class RentalRequestListResponse(BaseModel):
    """Unpaginated list of rental requests (per listing or per renter)."""

    data: list[RentalRequestResponse]
