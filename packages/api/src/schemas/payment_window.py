# This project was developed with assistance from AI tools.
"""Payment window schemas."""

from datetime import datetime

from pydantic import BaseModel


class PaymentWindow(BaseModel):
    """Evaluated payment window for one approved request."""

    days_until_start: int
    window_hours: int
    deadline: datetime
    is_expired: bool


class PaymentWindowResponse(BaseModel):
    """Response for GET /api/rental-requests/{id}/payment-window."""

    request_id: int
    status: str  # "open", "expired", "paid", "not_applicable"
    window_hours: int | None = None
    approved_at: datetime | None = None
    deadline: datetime | None = None
    seconds_remaining: int | None = None
