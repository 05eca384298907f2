# This project was developed with assistance from AI tools.
"""Admin endpoints for operating the payment-expiry scheduler."""

from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status

from ..middleware.auth import require_roles
from ..schemas.expiry import ExpiryRunResult, SchedulerStatus
from ..services.expiry import get_expiry_scheduler

router = APIRouter()


@router.post(
    "/expiry/run",
    response_model=ExpiryRunResult,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def run_expiry_scan() -> ExpiryRunResult:
    """Run one payment-expiry scan now, outside the timer schedule."""
    result = await get_expiry_scheduler().run_once()
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Expiry scan failed; see server logs",
        )
    return result


@router.get(
    "/expiry/status",
    response_model=SchedulerStatus,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def expiry_status() -> SchedulerStatus:
    return get_expiry_scheduler().status()
