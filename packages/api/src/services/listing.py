# This project was developed with assistance from AI tools.
"""Listing service: create, browse/search, owner edits, deletion and availability toggles."""

import logging
import math

from db import Listing, RentalRequest
from db.enums import ListingRentalStatus, RentalRequestStatus
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.listing import Category, ListingCreate

logger = logging.getLogger(__name__)

CATEGORIES: tuple[Category, ...] = (
    Category(slug="electronics", label="Electronics", subcategories=["cameras", "laptops", "audio", "gaming"]),
    Category(slug="tools", label="Tools", subcategories=["power_tools", "hand_tools", "garden"]),
    Category(slug="outdoor", label="Outdoor", subcategories=["camping", "cycling", "water_sports"]),
    Category(slug="vehicles", label="Vehicles", subcategories=["bikes", "scooters", "cars"]),
    Category(slug="furniture", label="Furniture"),
    Category(slug="party", label="Party & Events", subcategories=["lighting", "sound", "decor"]),
    Category(slug="books", label="Books"),
)

_CATEGORIES_BY_SLUG = {c.slug: c for c in CATEGORIES}

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 15.0


class UnknownCategoryError(ValueError):
    """Raised when a listing names a category outside the catalogue."""

    pass


class ListingInUseError(ValueError):
    """Raised when deleting a listing that has an approved or paid rental."""

    pass


# Requests that still hold the item; the listing cannot be deleted under them.
_ACTIVE_STATUSES = (RentalRequestStatus.APPROVED, RentalRequestStatus.PAID)


def _validate_category(category: str, subcategory: str | None) -> None:
    entry = _CATEGORIES_BY_SLUG.get(category)
    if entry is None:
        raise UnknownCategoryError(f"Unknown category '{category}'")
    if subcategory and entry.subcategories and subcategory not in entry.subcategories:
        raise UnknownCategoryError(
            f"Unknown subcategory '{subcategory}' for category '{category}'"
        )


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _apply_filters(stmt, *, category, subcategory, query, available_only):
    if available_only:
        stmt = stmt.where(
            Listing.is_available.is_(True),
            Listing.rental_status == ListingRentalStatus.AVAILABLE,
        )
    if category:
        stmt = stmt.where(Listing.category == category)
    if subcategory:
        stmt = stmt.where(Listing.subcategory == subcategory)
    if query:
        pattern = f"%{query}%"
        stmt = stmt.where(or_(Listing.title.ilike(pattern), Listing.description.ilike(pattern)))
    return stmt


async def list_listings(
    session: AsyncSession,
    *,
    offset: int = 0,
    limit: int = 20,
    category: str | None = None,
    subcategory: str | None = None,
    query: str | None = None,
    available_only: bool = True,
    near: tuple[float, float] | None = None,
    radius_km: float = DEFAULT_RADIUS_KM,
) -> tuple[list[Listing], int]:
    """Browse listings, newest first.

    Args:
        query: Case-insensitive substring matched against title and description.
        near: (latitude, longitude). When set, only listings within
            ``radius_km`` are returned, ordered by distance.
    """
    filters = {
        "category": category,
        "subcategory": subcategory,
        "query": query,
        "available_only": available_only,
    }

    if near is not None:
        # Distance is computed in Python; paginate after filtering.
        stmt = _apply_filters(select(Listing), **filters).where(
            Listing.latitude.is_not(None),
            Listing.longitude.is_not(None),
        )
        result = await session.execute(stmt)
        lat, lon = near
        in_range = []
        for listing in result.scalars().all():
            distance = haversine_km(lat, lon, listing.latitude, listing.longitude)
            if distance <= radius_km:
                in_range.append((distance, listing))
        in_range.sort(key=lambda pair: pair[0])
        page = [listing for _, listing in in_range[offset : offset + limit]]
        return page, len(in_range)

    count_stmt = _apply_filters(select(func.count(Listing.id)), **filters)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        _apply_filters(select(Listing), **filters)
        .order_by(Listing.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def list_owner_listings(session: AsyncSession, user: UserContext) -> list[Listing]:
    """Return every listing owned by the caller, newest first."""
    stmt = (
        select(Listing)
        .where(Listing.owner_user_id == user.user_id)
        .order_by(Listing.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_listing(session: AsyncSession, listing_id: int) -> Listing | None:
    result = await session.execute(select(Listing).where(Listing.id == listing_id))
    return result.scalar_one_or_none()


async def create_listing(
    session: AsyncSession,
    user: UserContext,
    data: ListingCreate,
) -> Listing:
    """Create a listing owned by the caller.

    Raises UnknownCategoryError if the category or subcategory is not in the catalogue.
    """
    _validate_category(data.category, data.subcategory)

    listing = Listing(
        owner_user_id=user.user_id,
        category=data.category,
        subcategory=data.subcategory,
        title=data.title,
        description=data.description,
        price_per_day=data.price_per_day,
        address=data.address,
        latitude=data.latitude,
        longitude=data.longitude,
        is_available=True,
        rental_status=ListingRentalStatus.AVAILABLE,
    )
    session.add(listing)
    await session.commit()
    await session.refresh(listing)
    logger.info("Listing #%s created by %s", listing.id, user.user_id)
    return listing


async def set_availability(
    session: AsyncSession,
    user: UserContext,
    listing_id: int,
    is_available: bool,
) -> Listing | None:
    """Owner toggle for new requests.

    Returns None if the listing does not exist or is not owned by the caller.
    """
    listing = await get_listing(session, listing_id)
    if listing is None or listing.owner_user_id != user.user_id:
        return None

    listing.is_available = is_available
    await session.commit()
    await session.refresh(listing)
    logger.info(
        "Listing #%s %s by owner",
        listing_id,
        "activated" if is_available else "deactivated",
    )
    return listing


async def update_listing(
    session: AsyncSession,
    user: UserContext,
    listing_id: int,
    data: ListingCreate,
) -> Listing | None:
    """Replace the editable fields of a listing owned by the caller.

    Availability and rental status are left alone; they belong to the
    rental lifecycle.

    Returns None if the listing does not exist or is not owned by the caller.
    Raises UnknownCategoryError.
    """
    _validate_category(data.category, data.subcategory)

    listing = await get_listing(session, listing_id)
    if listing is None or listing.owner_user_id != user.user_id:
        return None

    for field, value in data.model_dump().items():
        setattr(listing, field, value)
    await session.commit()
    await session.refresh(listing)
    logger.info("Listing #%s updated by owner", listing_id)
    return listing


async def delete_listing(
    session: AsyncSession,
    user: UserContext,
    listing_id: int,
) -> bool:
    """Delete a listing owned by the caller, with its requests and ratings.

    Returns False if the listing does not exist or is not owned by the caller.
    Raises ListingInUseError while an approved or paid rental holds the item.
    """
    listing = await get_listing(session, listing_id)
    if listing is None or listing.owner_user_id != user.user_id:
        return False

    active = (
        select(RentalRequest.id)
        .where(
            RentalRequest.listing_id == listing_id,
            RentalRequest.status.in_(_ACTIVE_STATUSES),
        )
        .exists()
    )
    result = await session.execute(
        delete(Listing).where(
            Listing.id == listing_id,
            Listing.owner_user_id == user.user_id,
            ~active,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise ListingInUseError("Listing has an approved or paid rental and cannot be deleted")
    await session.commit()
    logger.info("Listing #%s deleted by owner", listing_id)
    return True
