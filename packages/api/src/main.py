# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from db import SessionLocal
from db.database import db_service
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .routes import admin, health, listings, messaging, rental_requests
from .schemas.error import ErrorResponse
from .services.expiry import init_expiry_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    scheduler = init_expiry_scheduler(
        SessionLocal,
        interval_seconds=settings.EXPIRY_SCAN_INTERVAL_SECONDS,
        enabled=settings.EXPIRY_SCHEDULER_ENABLED,
    )
    scheduler.start()
    yield
    await scheduler.stop()
    await db_service.close()


app = FastAPI(
    title="RentSphere API",
    description="Peer-to-peer rental marketplace",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", settings.USER_ID_HEADER, settings.USER_ROLE_HEADER],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _problem(
    request: Request,
    status_code: int,
    detail: str,
    errors: list[dict] | None = None,
) -> JSONResponse:
    """Render an RFC 7807 body, echoing X-Request-ID when the caller sent one."""
    body = ErrorResponse(
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        errors=errors,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _problem(request, exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 with one entry per invalid field."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return _problem(request, 422, "Request validation failed", errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    response = _problem(request, 500, "An unexpected error occurred.")
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return response


# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(listings.router, prefix="/api", tags=["listings"])
app.include_router(rental_requests.router, prefix="/api/rental-requests", tags=["rental-requests"])
app.include_router(messaging.router, prefix="/api/conversations", tags=["messaging"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Welcome to RentSphere API", "version": __version__}
