# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ListingRentalStatus,
    PaymentStatus,
    RaterRole,
    RentalRequestStatus,
    UserRole,
)
from .models import Conversation, Listing, Message, Rating, RentalRequest

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ListingRentalStatus",
    "PaymentStatus",
    "RaterRole",
    "RentalRequestStatus",
    "UserRole",
    # Models
    "Conversation",
    "Listing",
    "Message",
    "Rating",
    "RentalRequest",
]
