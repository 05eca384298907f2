# This project was developed with assistance from AI tools.
"""Health endpoint schema."""

from pydantic import BaseModel

from .expiry import SchedulerStatus


class HealthResponse(BaseModel):
    status: str  # "ok" or "degraded"
    database: bool
    expiry_scheduler: SchedulerStatus | None = None
