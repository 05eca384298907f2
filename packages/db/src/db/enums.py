# This project was developed with assistance from AI tools.
"""
Domain enums for the rental marketplace.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class RentalRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"
    PAID = "paid"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @classmethod
    def terminal_statuses(cls) -> frozenset["RentalRequestStatus"]:
        """Statuses where a request can no longer change."""
        return frozenset({cls.DENIED, cls.EXPIRED, cls.CANCELLED, cls.COMPLETED})

    @classmethod
    def valid_transitions(cls) -> dict["RentalRequestStatus", frozenset["RentalRequestStatus"]]:
        """Allowed status transitions in the rental lifecycle."""
        return {
            cls.PENDING: frozenset({cls.APPROVED, cls.DENIED, cls.CANCELLED}),
            cls.APPROVED: frozenset({cls.PAID, cls.EXPIRED, cls.CANCELLED}),
            cls.PAID: frozenset({cls.COMPLETED}),
            cls.DENIED: frozenset(),
            cls.EXPIRED: frozenset(),
            cls.CANCELLED: frozenset(),
            cls.COMPLETED: frozenset(),
        }


class PaymentStatus(str, enum.Enum):
    PAID = "paid"


class ListingRentalStatus(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    RENTED = "rented"


class RaterRole(str, enum.Enum):
    """Which side of a completed rental left the rating."""

    RENTER = "renter"
    OWNER = "owner"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"
