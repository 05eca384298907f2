# This project was developed with assistance from AI tools.
"""Payment-expiry scan result schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ExpiryRunResult(BaseModel):
    """Summary of one scan over approved, unpaid rental requests."""

    started_at: datetime
    scanned: int = 0
    expired: list[int] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)

    @property
    def expired_count(self) -> int:
        return len(self.expired)


class SchedulerStatus(BaseModel):
    """Scheduler state reported by the health endpoint."""

    enabled: bool
    running: bool
    interval_seconds: float
    last_run_at: datetime | None = None
    last_expired_count: int | None = None
