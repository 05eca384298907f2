# This project was developed with assistance from AI tools.
"""Tests for rental request REST endpoints."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from rentsphere.schemas.payment_window import PaymentWindowResponse
from rentsphere.schemas.rating import RatingResponse
from rentsphere.services.rating import RatingNotAllowedError
from rentsphere.services.rental_request import (
    InvalidRentalDatesError,
    InvalidTransitionError,
    ListingUnavailableError,
    OwnListingError,
    PaymentWindowExpiredError,
    RentalRequestConflictError,
)
from tests.factories import CREATED, OWNER_HEADERS, RENTER_HEADERS, make_mock_request

_SERVICE = "rentsphere.services.rental_request"

_BODY = {
    "listing_id": 10,
    "start_date": "2099-01-10",
    "end_date": "2099-01-12",
}


class TestSubmitRequest:
    """POST /api/rental-requests"""

    def test_created(self, client):
        with patch(f"{_SERVICE}.create_request", new_callable=AsyncMock) as mock:
            mock.return_value = make_mock_request()
            resp = client.post("/api/rental-requests", json=_BODY, headers=RENTER_HEADERS)
        assert resp.status_code == 201
        body = resp.json()
        assert body["id"] == 100
        assert body["status"] == "pending"
        assert body["total_days"] == 2

    def test_requires_identity(self, client):
        resp = client.post("/api/rental-requests", json=_BODY)
        assert resp.status_code == 401
        assert resp.json()["title"] == "Unauthorized"

    def test_end_before_start_is_422(self, client):
        body = dict(_BODY, end_date="2099-01-09")
        resp = client.post("/api/rental-requests", json=body, headers=RENTER_HEADERS)
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        "exc,code",
        [
            (InvalidRentalDatesError("past"), 400),
            (OwnListingError("own"), 400),
            (ListingUnavailableError("gone"), 404),
            (RentalRequestConflictError("dup"), 409),
        ],
    )
    def test_service_errors_map_to_status(self, client, exc, code):
        with patch(f"{_SERVICE}.create_request", new_callable=AsyncMock) as mock:
            mock.side_effect = exc
            resp = client.post("/api/rental-requests", json=_BODY, headers=RENTER_HEADERS)
        assert resp.status_code == code
        assert resp.json()["detail"] == str(exc)


class TestDecideRequest:
    """PATCH /api/rental-requests/{id}"""

    def test_approve(self, client):
        approved = make_mock_request(
            status="approved", approved_at=datetime(2024, 1, 1, tzinfo=UTC)
        )
        with patch(f"{_SERVICE}.decide_request", new_callable=AsyncMock) as mock:
            mock.return_value = approved
            resp = client.patch(
                "/api/rental-requests/100",
                json={"status": "approved"},
                headers=OWNER_HEADERS,
            )
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert mock.await_args.args[2] == 100

    def test_invalid_status_is_422(self, client):
        resp = client.patch(
            "/api/rental-requests/100",
            json={"status": "expired"},
            headers=OWNER_HEADERS,
        )
        assert resp.status_code == 422

    def test_not_owner_is_404(self, client):
        with patch(f"{_SERVICE}.decide_request", new_callable=AsyncMock) as mock:
            mock.return_value = None
            resp = client.patch(
                "/api/rental-requests/100",
                json={"status": "denied"},
                headers=RENTER_HEADERS,
            )
        assert resp.status_code == 404


class TestPayRequest:
    """POST /api/rental-requests/{id}/pay"""

    def test_paid(self, client):
        paid = make_mock_request(status="paid", payment_status="paid")
        with patch(f"{_SERVICE}.pay_request", new_callable=AsyncMock) as mock:
            mock.return_value = paid
            resp = client.post("/api/rental-requests/100/pay", headers=RENTER_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["payment_status"] == "paid"

    def test_window_closed_is_409(self, client):
        with patch(f"{_SERVICE}.pay_request", new_callable=AsyncMock) as mock:
            mock.side_effect = PaymentWindowExpiredError("Payment window of 1h closed")
            resp = client.post("/api/rental-requests/100/pay", headers=RENTER_HEADERS)
        assert resp.status_code == 409
        assert resp.json()["title"] == "Conflict"


class TestListing:
    def test_mine(self, client):
        with patch(f"{_SERVICE}.list_renter_requests", new_callable=AsyncMock) as mock:
            mock.return_value = [make_mock_request(id=1), make_mock_request(id=2)]
            resp = client.get("/api/rental-requests/mine", headers=RENTER_HEADERS)
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()["data"]] == [1, 2]

    def test_listing_requests_forbidden_for_non_owner(self, client):
        with patch(f"{_SERVICE}.list_requests_for_listing", new_callable=AsyncMock) as mock:
            mock.return_value = None
            resp = client.get("/api/rental-requests/listing/10", headers=RENTER_HEADERS)
        assert resp.status_code == 403


class TestPaymentWindow:
    """GET /api/rental-requests/{id}/payment-window"""

    def test_open_window(self, client):
        deadline = datetime(2024, 1, 2, tzinfo=UTC)
        with patch(f"{_SERVICE}.get_payment_window_status", new_callable=AsyncMock) as mock:
            mock.return_value = PaymentWindowResponse(
                request_id=100,
                status="open",
                window_hours=24,
                deadline=deadline,
                seconds_remaining=600,
            )
            resp = client.get("/api/rental-requests/100/payment-window", headers=RENTER_HEADERS)
        assert resp.status_code == 200
        body = resp.json()
        assert body["window_hours"] == 24
        assert body["seconds_remaining"] == 600

    def test_not_visible_is_404(self, client):
        with patch(f"{_SERVICE}.get_payment_window_status", new_callable=AsyncMock) as mock:
            mock.return_value = None
            resp = client.get("/api/rental-requests/100/payment-window", headers=RENTER_HEADERS)
        assert resp.status_code == 404


def test_validation_error_lists_fields(client):
    body = dict(_BODY, end_date="2099-01-09")
    resp = client.post("/api/rental-requests", json=body, headers=RENTER_HEADERS)
    problem = resp.json()
    assert problem["title"] == "Unprocessable Entity"
    assert problem["detail"] == "Request validation failed"
    assert any("end_date must be after start_date" in err["msg"] for err in problem["errors"])


def test_create_without_trailing_slash_is_not_redirected(client):
    with patch(f"{_SERVICE}.create_request", new_callable=AsyncMock) as mock:
        mock.return_value = make_mock_request()
        resp = client.post(
            "/api/rental-requests",
            json=_BODY,
            headers=RENTER_HEADERS,
            follow_redirects=False,
        )
    assert resp.status_code == 201


class TestConfirmReturn:
    """POST /api/rental-requests/{id}/return"""

    def test_first_confirmation(self, client):
        confirmed = make_mock_request(
            status="paid", payment_status="paid", renter_return_confirmed_at=CREATED
        )
        with patch(f"{_SERVICE}.confirm_return", new_callable=AsyncMock) as mock:
            mock.return_value = confirmed
            resp = client.post("/api/rental-requests/100/return", headers=RENTER_HEADERS)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "paid"
        assert body["renter_return_confirmed_at"] is not None
        assert body["owner_return_confirmed_at"] is None

    def test_both_confirmations_complete(self, client):
        completed = make_mock_request(
            status="completed",
            payment_status="paid",
            renter_return_confirmed_at=CREATED,
            owner_return_confirmed_at=CREATED,
        )
        completed.completed_at = CREATED
        with patch(f"{_SERVICE}.confirm_return", new_callable=AsyncMock) as mock:
            mock.return_value = completed
            resp = client.post("/api/rental-requests/100/return", headers=OWNER_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        assert resp.json()["completed_at"] is not None

    def test_not_yet_paid_is_409(self, client):
        with patch(f"{_SERVICE}.confirm_return", new_callable=AsyncMock) as mock:
            mock.side_effect = InvalidTransitionError("Cannot transition from 'approved'")
            resp = client.post("/api/rental-requests/100/return", headers=RENTER_HEADERS)
        assert resp.status_code == 409

    def test_stranger_is_404(self, client):
        with patch(f"{_SERVICE}.confirm_return", new_callable=AsyncMock) as mock:
            mock.return_value = None
            resp = client.post("/api/rental-requests/100/return", headers=RENTER_HEADERS)
        assert resp.status_code == 404


_RATING = RatingResponse(
    id=1,
    rental_request_id=100,
    listing_id=10,
    rater_user_id="renter-raj",
    rated_user_id="owner-olivia",
    rater_role="renter",
    rating=5,
    review="Worked great",
    created_at=CREATED,
    updated_at=CREATED,
)


class TestRatings:
    """POST/GET /api/rental-requests/{id}/ratings"""

    def test_rate_completed_rental(self, client):
        with patch("rentsphere.services.rating.submit_rating", new_callable=AsyncMock) as mock:
            mock.return_value = _RATING
            resp = client.post(
                "/api/rental-requests/100/ratings",
                json={"rating": 5, "review": "Worked great"},
                headers=RENTER_HEADERS,
            )
        assert resp.status_code == 201
        assert resp.json()["rated_user_id"] == "owner-olivia"
        assert mock.await_args.args[3].rating == 5

    def test_rating_out_of_range_is_422(self, client):
        resp = client.post(
            "/api/rental-requests/100/ratings", json={"rating": 9}, headers=RENTER_HEADERS
        )
        assert resp.status_code == 422

    def test_rating_before_completion_is_409(self, client):
        with patch("rentsphere.services.rating.submit_rating", new_callable=AsyncMock) as mock:
            mock.side_effect = RatingNotAllowedError("Only completed rentals can be rated")
            resp = client.post(
                "/api/rental-requests/100/ratings", json={"rating": 4}, headers=RENTER_HEADERS
            )
        assert resp.status_code == 409

    def test_list_ratings(self, client):
        with patch(
            "rentsphere.services.rating.list_request_ratings", new_callable=AsyncMock
        ) as mock:
            mock.return_value = [_RATING]
            resp = client.get("/api/rental-requests/100/ratings", headers=OWNER_HEADERS)
        assert resp.status_code == 200
        assert [r["rating"] for r in resp.json()["data"]] == [5]

    def test_list_ratings_hidden_is_404(self, client):
        with patch(
            "rentsphere.services.rating.list_request_ratings", new_callable=AsyncMock
        ) as mock:
            mock.return_value = None
            resp = client.get("/api/rental-requests/100/ratings", headers=OWNER_HEADERS)
        assert resp.status_code == 404
