# This project was developed with assistance from AI tools.
"""Ratings left by renters and owners once a rental has completed."""

import logging

from db import Listing, Rating, RentalRequest
from db.enums import RaterRole, RentalRequestStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.rating import ListingRatingSummary, RatingCreate, RatingResponse

logger = logging.getLogger(__name__)


class RatingNotAllowedError(ValueError):
    """Raised when rating a request that has not completed."""

    pass


async def _load_participants(
    session: AsyncSession,
    request_id: int,
) -> tuple[RentalRequest, Listing] | None:
    stmt = (
        select(RentalRequest, Listing)
        .join(Listing, Listing.id == RentalRequest.listing_id)
        .where(RentalRequest.id == request_id)
    )
    row = (await session.execute(stmt)).one_or_none()
    if row is None:
        return None
    return row[0], row[1]


async def submit_rating(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
    data: RatingCreate,
) -> Rating | None:
    """Rate the other party of a completed rental.

    The renter's rating is attributed to the listing owner, the owner's to the
    renter. Submitting again replaces the caller's earlier rating.

    Returns None if the request is not found or the caller took no part in it.
    Raises RatingNotAllowedError if the request has not completed.
    """
    loaded = await _load_participants(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded

    if user.user_id == request.renter_user_id:
        role, rated_user_id = RaterRole.RENTER, listing.owner_user_id
    elif user.user_id == listing.owner_user_id:
        role, rated_user_id = RaterRole.OWNER, request.renter_user_id
    else:
        return None

    if request.status != RentalRequestStatus.COMPLETED:
        raise RatingNotAllowedError("Only completed rentals can be rated")

    existing = await session.execute(
        select(Rating).where(
            Rating.rental_request_id == request_id,
            Rating.rater_role == role,
        )
    )
    rating = existing.scalar_one_or_none()
    if rating is None:
        rating = Rating(
            rental_request_id=request_id,
            listing_id=listing.id,
            rater_user_id=user.user_id,
            rated_user_id=rated_user_id,
            rater_role=role,
        )
        session.add(rating)
    rating.rating = data.rating
    rating.review = data.review

    await session.commit()
    await session.refresh(rating)
    logger.info(
        "Rental request #%s rated %d by %s %s",
        request_id,
        data.rating,
        role.value,
        user.user_id,
    )
    return rating


async def list_request_ratings(
    session: AsyncSession,
    user: UserContext,
    request_id: int,
) -> list[Rating] | None:
    """Both sides' ratings for a request, visible to its participants and admins."""
    loaded = await _load_participants(session, request_id)
    if loaded is None:
        return None
    request, listing = loaded
    if not (user.is_admin or user.user_id in (request.renter_user_id, listing.owner_user_id)):
        return None

    result = await session.execute(
        select(Rating).where(Rating.rental_request_id == request_id).order_by(Rating.id)
    )
    return list(result.scalars().all())


async def listing_rating_summary(session: AsyncSession, listing_id: int) -> ListingRatingSummary:
    """Public view of what renters said about a listing."""
    result = await session.execute(
        select(Rating)
        .where(
            Rating.listing_id == listing_id,
            Rating.rater_role == RaterRole.RENTER,
        )
        .order_by(Rating.created_at.desc())
    )
    ratings = list(result.scalars().all())
    average = round(sum(r.rating for r in ratings) / len(ratings), 2) if ratings else None
    return ListingRatingSummary(
        listing_id=listing_id,
        count=len(ratings),
        average=average,
        data=[RatingResponse.model_validate(r) for r in ratings],
    )
