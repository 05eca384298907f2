# This project was developed with assistance from AI tools.
"""Tests for listing REST endpoints."""

from unittest.mock import AsyncMock, patch

from rentsphere.schemas.rating import ListingRatingSummary
from rentsphere.services.listing import ListingInUseError, UnknownCategoryError

from tests.factories import OWNER_HEADERS, RENTER_HEADERS, make_mock_listing

_SERVICE = "rentsphere.services.listing"


def test_categories_are_public(client):
    resp = client.get("/api/categories")
    assert resp.status_code == 200
    slugs = [c["slug"] for c in resp.json()]
    assert "tools" in slugs


def test_browse_paginates(client):
    with patch(f"{_SERVICE}.list_listings", new_callable=AsyncMock) as mock:
        mock.return_value = ([make_mock_listing(id=1), make_mock_listing(id=2)], 5)
        resp = client.get("/api/listings?limit=2&category=tools&q=drill", headers=RENTER_HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"total": 5, "offset": 0, "limit": 2, "has_more": True}
    kwargs = mock.await_args.kwargs
    assert kwargs["category"] == "tools"
    assert kwargs["query"] == "drill"
    assert kwargs["near"] is None


def test_browse_near_location(client):
    with patch(f"{_SERVICE}.list_listings", new_callable=AsyncMock) as mock:
        mock.return_value = ([], 0)
        resp = client.get("/api/listings?lat=12.9&lng=77.6&radius_km=5", headers=RENTER_HEADERS)
    assert resp.status_code == 200
    assert mock.await_args.kwargs["near"] == (12.9, 77.6)
    assert mock.await_args.kwargs["radius_km"] == 5


def test_browse_rejects_half_a_location(client):
    resp = client.get("/api/listings?lat=12.9", headers=RENTER_HEADERS)
    assert resp.status_code == 400


def test_create_listing(client):
    body = {
        "category": "tools",
        "title": "Cordless drill",
        "price_per_day": "12.50",
        "address": "1 MG Road",
    }
    with patch(f"{_SERVICE}.create_listing", new_callable=AsyncMock) as mock:
        mock.return_value = make_mock_listing()
        resp = client.post("/api/listings", json=body, headers=OWNER_HEADERS)
    assert resp.status_code == 201
    assert resp.json()["rental_status"] == "available"


def test_create_listing_rejects_zero_price(client):
    body = {"category": "tools", "title": "Drill", "price_per_day": "0", "address": "x"}
    resp = client.post("/api/listings", json=body, headers=OWNER_HEADERS)
    assert resp.status_code == 422


def test_get_missing_listing(client):
    with patch(f"{_SERVICE}.get_listing", new_callable=AsyncMock) as mock:
        mock.return_value = None
        resp = client.get("/api/listings/999", headers=RENTER_HEADERS)
    assert resp.status_code == 404


def test_availability_toggle_by_non_owner(client):
    with patch(f"{_SERVICE}.set_availability", new_callable=AsyncMock) as mock:
        mock.return_value = None
        resp = client.patch(
            "/api/listings/10/availability",
            json={"is_available": False},
            headers=RENTER_HEADERS,
        )
    assert resp.status_code == 404


_EDIT = {
    "category": "tools",
    "title": "Hammer drill",
    "price_per_day": "15.00",
    "address": "1 MG Road",
}


def test_owner_edits_listing(client):
    with patch(f"{_SERVICE}.update_listing", new_callable=AsyncMock) as mock:
        mock.return_value = make_mock_listing(title="Hammer drill")
        resp = client.put("/api/listings/10", json=_EDIT, headers=OWNER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Hammer drill"
    assert mock.await_args.args[2] == 10


def test_edit_by_non_owner_is_404(client):
    with patch(f"{_SERVICE}.update_listing", new_callable=AsyncMock) as mock:
        mock.return_value = None
        resp = client.put("/api/listings/10", json=_EDIT, headers=RENTER_HEADERS)
    assert resp.status_code == 404


def test_edit_with_unknown_category_is_400(client):
    with patch(f"{_SERVICE}.update_listing", new_callable=AsyncMock) as mock:
        mock.side_effect = UnknownCategoryError("Unknown category 'boats'")
        resp = client.put("/api/listings/10", json=_EDIT, headers=OWNER_HEADERS)
    assert resp.status_code == 400


def test_owner_deletes_listing(client):
    with patch(f"{_SERVICE}.delete_listing", new_callable=AsyncMock) as mock:
        mock.return_value = True
        resp = client.delete("/api/listings/10", headers=OWNER_HEADERS)
    assert resp.status_code == 204
    assert resp.content == b""


def test_delete_by_non_owner_is_404(client):
    with patch(f"{_SERVICE}.delete_listing", new_callable=AsyncMock) as mock:
        mock.return_value = False
        resp = client.delete("/api/listings/10", headers=RENTER_HEADERS)
    assert resp.status_code == 404


def test_delete_while_rented_is_409(client):
    with patch(f"{_SERVICE}.delete_listing", new_callable=AsyncMock) as mock:
        mock.side_effect = ListingInUseError("Listing has an active rental")
        resp = client.delete("/api/listings/10", headers=OWNER_HEADERS)
    assert resp.status_code == 409
    assert resp.json()["title"] == "Conflict"


def test_listing_ratings(client):
    with patch("rentsphere.services.rating.listing_rating_summary", new_callable=AsyncMock) as mock:
        mock.return_value = ListingRatingSummary(listing_id=10, count=0, average=None, data=[])
        resp = client.get("/api/listings/10/ratings", headers=RENTER_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"listing_id": 10, "count": 0, "average": None, "data": []}
