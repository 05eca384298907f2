# This project was developed with assistance from AI tools.
"""Rental request lifecycle: submit, approve/deny, pay, cancel, return.

Status changes that race with the payment-expiry scheduler are written as
conditional updates on the current status, so whichever side commits first
wins and the other sees zero affected rows.
"""

import logging
from datetime import UTC, date, datetime

from db import Listing, RentalRequest
from db.enums import ListingRentalStatus, PaymentStatus, RentalRequestStatus
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.payment_window import PaymentWindowResponse
from ..schemas.rental_request import RentalRequestCreate
from .payment_window import evaluate_payment_window

logger = logging.getLogger(__name__)


class RentalRequestError(ValueError):
    """Base class for rejected rental request operations."""

    pass


class InvalidRentalDatesError(RentalRequestError):
    """Raised when the requested dates cannot be booked."""

    pass


class ListingUnavailableError(RentalRequestError):
    """Raised when the listing is missing or not open for requests."""

    pass


class OwnListingError(RentalRequestError):
    """Raised when an owner tries to rent their own listing."""

    pass


class InvalidTransitionError(RentalRequestError):
    """Raised when a status transition is not allowed."""

    pass


class PaymentWindowExpiredError(RentalRequestError):
    """Raised when payment arrives after the payment window closed."""

    pass


class RentalRequestConflictError(RentalRequestError):
    """Raised when the request or listing changed underneath the operation."""

    pass


_TRANSITIONS = RentalRequestStatus.valid_transitions()

# Owners see actionable requests first.
_OWNER_ORDER = case(
    (RentalRequest.status == RentalRequestStatus.PENDING, 1),
    (RentalRequest.status == RentalRequestStatus.APPROVED, 2),
    else_=3,
)


def _check_transition(current: RentalRequestStatus, new: RentalRequestStatus) -> None:
    allowed = _TRANSITIONS.get(current, frozenset())
    if new not in allowed:
        raise InvalidTransitionError(
            f"Cannot transition from '{current.value}' to '{new.value}'. "
            f"Allowed: {sorted(s.value for s in allowed) if allowed else 'none (terminal status)'}."
        )


def _approval_time(request: RentalRequest) -> datetime:
    return request.approved_at or request.updated_at


async def _load_with_listing(
    session: AsyncSession,
    request_id: int,
) -> tuple[RentalRequest, Listing] | None:
    stmt = (
        select(RentalRequest, Listing)
        .join(Listing, Listing.id == RentalRequest.listing_id)
        .where(RentalRequest.id == request_id)
    )
    result = await session.execute(stmt)
    row = result.one_or_none()
    if row is None:
        return None
    return row[0], row[1]


async def create_request(
    session: AsyncSession,
    user: UserContext,
    data: RentalRequestCreate,
    *,
    today: date | None = None,
) -> RentalRequest:
    """Submit a rental request for an available listing.

    Raises:
        InvalidRentalDatesError: start date is in the past.
        ListingUnavailableError: listing missing or not open for requests.
        OwnListingError: caller owns the listing.
        RentalRequestConflictError: caller already has a pending request for it.
    """
    if today is None:
        today = datetime.now(UTC).date()
    if data.start_date < today:
        raise InvalidRentalDatesError("Start date cannot be in the past")

    listing_result = await session.execute(
        select(Listing).where(
            Listing.id == data.listing_id,
            Listing.is_available.is_(True),
            Listing.rental_status == ListingRentalStatus.AVAILABLE,
        )
    )
    listing = listing_result.scalar_one_or_none()
    if listing is None:
        raise ListingUnavailableError("Listing not found or not available for rent")

    if listing.owner_user_id == user.user_id:
        raise OwnListingError("You cannot rent your own listing")

    existing = await session.execute(
        select(RentalRequest.id).where(
            RentalRequest.listing_id == data.listing_id,
            RentalRequest.renter_user_id == user.user_id,
            RentalRequest.status == RentalRequestStatus.PENDING,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise RentalRequestConflictError("You already have a pending request for this listing")

    total_days = (data.end_date - data.start_date).days
    request = RentalRequest(
        listing_id=listing.id,
        renter_user_id=user.user_id,
        start_date=data.start_date,
        end_date=data.end_date,
        total_days=total_days,
        total_price=listing.price_per_day * total_days,
        message=data.message or "",
        status=RentalRequestStatus.PENDING,
    )
    session.add(request)
    await session.commit()
    await session.refresh(request)
    logger.info(
        "Rental request #%s submitted for listing #%s (%d days)",
        request.id,
        listing.id,
        total_days,
    )
    return request


async def get_request(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
) -> RentalRequest | None:
    """Return a request visible to the caller (renter, listing owner, or admin)."""
    loaded = await _load_with_listing(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded
    if user.is_admin or user.user_id in (request.renter_user_id, listing.owner_user_id):
        return request
    return None


async def list_requests_for_listing(
    session: AsyncSession,
    user: UserContext,
    listing_id: int,
) -> list[RentalRequest] | None:
    """Owner view of every request on a listing.

    Returns None if the listing does not exist or is not owned by the caller.
    """
    owner = await session.execute(select(Listing.owner_user_id).where(Listing.id == listing_id))
    owner_id = owner.scalar_one_or_none()
    if owner_id is None or (owner_id != user.user_id and not user.is_admin):
        return None

    stmt = (
        select(RentalRequest)
        .where(RentalRequest.listing_id == listing_id)
        .order_by(_OWNER_ORDER, RentalRequest.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_renter_requests(session: AsyncSession, user: UserContext) -> list[RentalRequest]:
    """Requests the caller has submitted as a renter, newest first."""
    stmt = (
        select(RentalRequest)
        .where(RentalRequest.renter_user_id == user.user_id)
        .order_by(RentalRequest.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def decide_request(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
    new_status: RentalRequestStatus,
    *,
    reason: str | None = None,
    now: datetime | None = None,
) -> RentalRequest | None:
    """Owner approves or denies a pending request.

    Approval reserves the listing in the same transaction, which is what keeps
    at most one approved, unpaid request per listing.

    Returns None if the request is not found or the caller does not own the listing.
    Raises InvalidTransitionError / RentalRequestConflictError.
    """
    if new_status not in (RentalRequestStatus.APPROVED, RentalRequestStatus.DENIED):
        raise InvalidTransitionError("Status must be either approved or denied")
    if now is None:
        now = datetime.now(UTC)

    loaded = await _load_with_listing(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded
    if listing.owner_user_id != user.user_id:
        return None

    _check_transition(request.status, new_status)

    values: dict = {"status": new_status, "updated_at": now}
    if new_status == RentalRequestStatus.APPROVED:
        values["approved_at"] = now
    else:
        values["denial_reason"] = reason

    result = await session.execute(
        update(RentalRequest)
        .where(
            RentalRequest.id == request_id,
            RentalRequest.status == RentalRequestStatus.PENDING,
        )
        .values(**values)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise RentalRequestConflictError("Request is no longer pending")

    if new_status == RentalRequestStatus.APPROVED:
        reserved = await session.execute(
            update(Listing)
            .where(
                Listing.id == listing.id,
                Listing.rental_status == ListingRentalStatus.AVAILABLE,
            )
            .values(is_available=False, rental_status=ListingRentalStatus.RESERVED)
        )
        if reserved.rowcount == 0:
            await session.rollback()
            raise RentalRequestConflictError("Listing is already reserved by another request")

    await session.commit()
    await session.refresh(request)
    logger.info("Rental request #%s %s by owner %s", request_id, new_status.value, user.user_id)
    return request


async def pay_request(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
    *,
    now: datetime | None = None,
) -> RentalRequest | None:
    """Record the renter's payment for an approved request.

    Payment is refused once the payment window has closed, even if the
    scheduler has not expired the request yet.

    Returns None if the request is not found or the caller is not the renter.
    Raises InvalidTransitionError / PaymentWindowExpiredError /
    RentalRequestConflictError.
    """
    if now is None:
        now = datetime.now(UTC)

    loaded = await _load_with_listing(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded
    if request.renter_user_id != user.user_id:
        return None

    if request.payment_status is not None:
        raise InvalidTransitionError("Request has already been paid")
    _check_transition(request.status, RentalRequestStatus.PAID)

    window = evaluate_payment_window(_approval_time(request), request.start_date, now)
    if window.is_expired:
        raise PaymentWindowExpiredError(
            f"Payment window of {window.window_hours}h closed at {window.deadline.isoformat()}"
        )

    result = await session.execute(
        update(RentalRequest)
        .where(
            RentalRequest.id == request_id,
            RentalRequest.status == RentalRequestStatus.APPROVED,
            RentalRequest.payment_status.is_(None),
        )
        .values(
            status=RentalRequestStatus.PAID,
            payment_status=PaymentStatus.PAID,
            paid_at=now,
            updated_at=now,
        )
    )
    if result.rowcount == 0:
        await session.rollback()
        raise RentalRequestConflictError("Request is no longer awaiting payment")

    await session.execute(
        update(Listing)
        .where(Listing.id == listing.id)
        .values(is_available=False, rental_status=ListingRentalStatus.RENTED)
    )
    await session.commit()
    await session.refresh(request)
    logger.info("Rental request #%s paid by %s", request_id, user.user_id)
    return request


async def cancel_request(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
    *,
    now: datetime | None = None,
) -> RentalRequest | None:
    """Renter withdraws a pending or approved-but-unpaid request.

    Cancelling an approved request releases the listing reservation.
    Returns None if the request is not found or the caller is not the renter.
    """
    if now is None:
        now = datetime.now(UTC)

    loaded = await _load_with_listing(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded
    if request.renter_user_id != user.user_id:
        return None

    previous = request.status
    _check_transition(previous, RentalRequestStatus.CANCELLED)

    result = await session.execute(
        update(RentalRequest)
        .where(
            RentalRequest.id == request_id,
            RentalRequest.status == previous,
            RentalRequest.payment_status.is_(None),
        )
        .values(status=RentalRequestStatus.CANCELLED, updated_at=now)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise RentalRequestConflictError("Request changed before it could be cancelled")

    if previous == RentalRequestStatus.APPROVED:
        await session.execute(
            update(Listing)
            .where(Listing.id == listing.id)
            .values(is_available=True, rental_status=ListingRentalStatus.AVAILABLE)
        )

    await session.commit()
    await session.refresh(request)
    logger.info("Rental request #%s cancelled by renter", request_id)
    return request


async def confirm_return(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
    *,
    now: datetime | None = None,
) -> RentalRequest | None:
    """Renter or owner confirms the item is back with its owner.

    Each side confirms once. When both have confirmed, the request moves to
    completed and the listing is reopened for new requests, in one commit.

    Returns None if the request is not found or the caller is neither the
    renter nor the listing owner.
    Raises InvalidTransitionError / RentalRequestConflictError.
    """
    if now is None:
        now = datetime.now(UTC)

    loaded = await _load_with_listing(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded
    if user.user_id == request.renter_user_id:
        column = RentalRequest.renter_return_confirmed_at
        side = "renter"
    elif user.user_id == listing.owner_user_id:
        column = RentalRequest.owner_return_confirmed_at
        side = "owner"
    else:
        return None

    _check_transition(request.status, RentalRequestStatus.COMPLETED)
    if getattr(request, column.key) is not None:
        return request

    confirmed = await session.execute(
        update(RentalRequest)
        .where(
            RentalRequest.id == request_id,
            RentalRequest.status == RentalRequestStatus.PAID,
        )
        .values({column.key: now, "updated_at": now})
    )
    if confirmed.rowcount == 0:
        await session.rollback()
        raise RentalRequestConflictError("Request is no longer an active rental")

    completed = await session.execute(
        update(RentalRequest)
        .where(
            RentalRequest.id == request_id,
            RentalRequest.status == RentalRequestStatus.PAID,
            RentalRequest.renter_return_confirmed_at.is_not(None),
            RentalRequest.owner_return_confirmed_at.is_not(None),
        )
        .values(status=RentalRequestStatus.COMPLETED, completed_at=now, updated_at=now)
    )
    if completed.rowcount:
        await session.execute(
            update(Listing)
            .where(Listing.id == listing.id)
            .values(is_available=True, rental_status=ListingRentalStatus.AVAILABLE)
        )

    await session.commit()
    await session.refresh(request)
    if completed.rowcount:
        logger.info(
            "Rental request #%s completed; listing #%s reopened", request_id, listing.id
        )
    else:
        logger.info("Return of rental request #%s confirmed by %s", request_id, side)
    return request


async def get_payment_window_status(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
    *,
    now: datetime | None = None,
) -> PaymentWindowResponse | None:
    """Report the payment deadline for a request visible to the caller.

    Returns None if the request is not found or not visible.
    """
    request = await get_request(session, user, request_id)
    if request is None:
        return None

    if request.payment_status is not None:
        return PaymentWindowResponse(request_id=request_id, status="paid")
    if request.status == RentalRequestStatus.EXPIRED:
        return PaymentWindowResponse(request_id=request_id, status="expired")
    if request.status != RentalRequestStatus.APPROVED:
        return PaymentWindowResponse(request_id=request_id, status="not_applicable")

    if now is None:
        now = datetime.now(UTC)

    approved_at = _approval_time(request)
    window = evaluate_payment_window(approved_at, request.start_date, now)
    remaining = int((window.deadline - now).total_seconds())

    return PaymentWindowResponse(
        request_id=request_id,
        status="expired" if window.is_expired else "open",
        window_hours=window.window_hours,
        approved_at=approved_at,
        deadline=window.deadline,
        seconds_remaining=max(remaining, 0),
    )
