# This project was developed with assistance from AI tools.
"""Liveness and dependency health."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends

from ..schemas.health import HealthResponse
from ..services.expiry import get_expiry_scheduler

router = APIRouter()


@router.get("/", response_model=HealthResponse)
async def health(db_service: DatabaseService = Depends(get_db_service)) -> HealthResponse:
    """Report database reachability and payment-expiry scheduler state."""
    database_ok = await db_service.health_check()
    try:
        scheduler = get_expiry_scheduler().status()
    except RuntimeError:
        scheduler = None
    return HealthResponse(
        status="ok" if database_ok else "degraded",
        database=database_ok,
        expiry_scheduler=scheduler,
    )
