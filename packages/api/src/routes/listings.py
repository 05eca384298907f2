# This project was developed with assistance from AI tools.
"""Listing browse/search and owner management routes."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas import Pagination
from ..schemas.listing import (
    AvailabilityUpdate,
    Category,
    ListingCreate,
    ListingListResponse,
    ListingResponse,
)
from ..schemas.rating import ListingRatingSummary
from ..services import listing as listing_service
from ..services import rating as rating_service
from ..services.listing import CATEGORIES, ListingInUseError, UnknownCategoryError

router = APIRouter()


@router.get("/categories", response_model=list[Category])
async def list_categories() -> list[Category]:
    """Category catalogue for listing creation and browse filters."""
    return list(CATEGORIES)


@router.get("/listings", response_model=ListingListResponse)
async def browse_listings(
    _user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    category: str | None = None,
    subcategory: str | None = None,
    q: str | None = Query(default=None, max_length=200),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    radius_km: float = Query(default=listing_service.DEFAULT_RADIUS_KM, gt=0, le=500),
) -> ListingListResponse:
    """Browse available listings, optionally near a location."""
    if (lat is None) != (lng is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="lat and lng must be provided together",
        )

    listings, total = await listing_service.list_listings(
        session,
        offset=offset,
        limit=limit,
        category=category,
        subcategory=subcategory,
        query=q,
        near=(lat, lng) if lat is not None else None,
        radius_km=radius_km,
    )
    return ListingListResponse(
        data=[ListingResponse.model_validate(item) for item in listings],
        pagination=Pagination.for_page(total, offset, limit),
    )


@router.post("/listings", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    body: ListingCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ListingResponse:
    try:
        listing = await listing_service.create_listing(session, user, body)
    except UnknownCategoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ListingResponse.model_validate(listing)


@router.get("/listings/mine", response_model=list[ListingResponse])
async def my_listings(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> list[ListingResponse]:
    listings = await listing_service.list_owner_listings(session, user)
    return [ListingResponse.model_validate(item) for item in listings]


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: int,
    _user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.get_listing(session, listing_id)
    if listing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Listing not found",
        )
    return ListingResponse.model_validate(listing)


@router.patch("/listings/{listing_id}/availability", response_model=ListingResponse)
async def update_availability(
    listing_id: int,
    body: AvailabilityUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.set_availability(session, user, listing_id, body.is_available)
    if listing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Listing not found or you do not have permission to update it",
        )
    return ListingResponse.model_validate(listing)


@router.put("/listings/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: int,
    body: ListingCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ListingResponse:
    """Owner replaces the listing's details."""
    try:
        listing = await listing_service.update_listing(session, user, listing_id, body)
    except UnknownCategoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    if listing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Listing not found or you do not have permission to update it",
        )
    return ListingResponse.model_validate(listing)


@router.delete("/listings/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> None:
    try:
        deleted = await listing_service.delete_listing(session, user, listing_id)
    except ListingInUseError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Listing not found or you do not have permission to delete it",
        )


@router.get("/listings/{listing_id}/ratings", response_model=ListingRatingSummary)
async def listing_ratings(
    listing_id: int,
    _user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ListingRatingSummary:
    """What renters said about this listing, with the average score."""
    return await rating_service.listing_rating_summary(session, listing_id)
