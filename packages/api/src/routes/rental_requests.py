# This project was developed with assistance from AI tools.
"""Rental request routes: submit, review, pay, cancel, return, ratings, payment window."""

from db import get_db
from db.enums import RentalRequestStatus
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.payment_window import PaymentWindowResponse
from ..schemas.rating import RatingCreate, RatingListResponse, RatingResponse
from ..schemas.rental_request import (
    RentalRequestCreate,
    RentalRequestDecision,
    RentalRequestListResponse,
    RentalRequestResponse,
)
from ..services import rating as rating_service
from ..services import rental_request as request_service
from ..services.rating import RatingNotAllowedError
from ..services.rental_request import (
    InvalidRentalDatesError,
    InvalidTransitionError,
    ListingUnavailableError,
    OwnListingError,
    PaymentWindowExpiredError,
    RentalRequestConflictError,
    RentalRequestError,
)

router = APIRouter()

_ERROR_STATUS: dict[type[RentalRequestError], int] = {
    InvalidRentalDatesError: status.HTTP_400_BAD_REQUEST,
    OwnListingError: status.HTTP_400_BAD_REQUEST,
    ListingUnavailableError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    PaymentWindowExpiredError: status.HTTP_409_CONFLICT,
    RentalRequestConflictError: status.HTTP_409_CONFLICT,
}


def _to_http(exc: RentalRequestError) -> HTTPException:
    return HTTPException(
        status_code=_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail=str(exc),
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Request not found or you do not have permission to access it",
    )


@router.post("", response_model=RentalRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    body: RentalRequestCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestResponse:
    try:
        request = await request_service.create_request(session, user, body)
    except RentalRequestError as exc:
        raise _to_http(exc) from exc
    return RentalRequestResponse.model_validate(request)


@router.get("/mine", response_model=RentalRequestListResponse)
async def my_requests(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestListResponse:
    """Requests the caller submitted as a renter."""
    requests = await request_service.list_renter_requests(session, user)
    return RentalRequestListResponse(
        data=[RentalRequestResponse.model_validate(r) for r in requests]
    )


@router.get("/listing/{listing_id}", response_model=RentalRequestListResponse)
async def listing_requests(
    listing_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestListResponse:
    """Owner view: pending first, then approved, then the rest."""
    requests = await request_service.list_requests_for_listing(session, user, listing_id)
    if requests is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view requests for your own listings",
        )
    return RentalRequestListResponse(
        data=[RentalRequestResponse.model_validate(r) for r in requests]
    )


@router.get("/{request_id}", response_model=RentalRequestResponse)
async def get_request(
    request_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestResponse:
    request = await request_service.get_request(session, user, request_id)
    if request is None:
        raise _not_found()
    return RentalRequestResponse.model_validate(request)


@router.patch("/{request_id}", response_model=RentalRequestResponse)
async def decide_request(
    request_id: int,
    body: RentalRequestDecision,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestResponse:
    """Listing owner approves or denies a pending request."""
    try:
        request = await request_service.decide_request(
            session,
            user,
            request_id,
            RentalRequestStatus(body.status),
            reason=body.reason,
        )
    except RentalRequestError as exc:
        raise _to_http(exc) from exc
    if request is None:
        raise _not_found()
    return RentalRequestResponse.model_validate(request)


@router.post("/{request_id}/pay", response_model=RentalRequestResponse)
async def pay_request(
    request_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestResponse:
    """Renter pays for an approved request within its payment window."""
    try:
        request = await request_service.pay_request(session, user, request_id)
    except RentalRequestError as exc:
        raise _to_http(exc) from exc
    if request is None:
        raise _not_found()
    return RentalRequestResponse.model_validate(request)


@router.post("/{request_id}/cancel", response_model=RentalRequestResponse)
async def cancel_request(
    request_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestResponse:
    try:
        request = await request_service.cancel_request(session, user, request_id)
    except RentalRequestError as exc:
        raise _to_http(exc) from exc
    if request is None:
        raise _not_found()
    return RentalRequestResponse.model_validate(request)


@router.post("/{request_id}/return", response_model=RentalRequestResponse)
async def confirm_return(
    request_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RentalRequestResponse:
    """Renter or owner confirms the return; both confirmations complete the rental."""
    try:
        request = await request_service.confirm_return(session, user, request_id)
    except RentalRequestError as exc:
        raise _to_http(exc) from exc
    if request is None:
        raise _not_found()
    return RentalRequestResponse.model_validate(request)


@router.post(
    "/{request_id}/ratings",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def rate_request(
    request_id: int,
    body: RatingCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RatingResponse:
    """Renter rates the owner and item, or owner rates the renter."""
    try:
        rating = await rating_service.submit_rating(session, user, request_id, body)
    except RatingNotAllowedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if rating is None:
        raise _not_found()
    return RatingResponse.model_validate(rating)


@router.get("/{request_id}/ratings", response_model=RatingListResponse)
async def request_ratings(
    request_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RatingListResponse:
    ratings = await rating_service.list_request_ratings(session, user, request_id)
    if ratings is None:
        raise _not_found()
    return RatingListResponse(data=[RatingResponse.model_validate(r) for r in ratings])


@router.get("/{request_id}/payment-window", response_model=PaymentWindowResponse)
async def payment_window(
    request_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PaymentWindowResponse:
    result = await request_service.get_payment_window_status(session, user, request_id)
    if result is None:
        raise _not_found()
    return result
