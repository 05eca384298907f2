# This project was developed with assistance from AI tools.
"""
RentSphere -- domain models

Listings owned by members and the rental requests renters submit against them.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import ListingRentalStatus, PaymentStatus, RaterRole, RentalRequestStatus


class Listing(Base):
    """An item offered for rent."""

    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_user_id = Column(String(255), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    subcategory = Column(String(50), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price_per_day = Column(Numeric(10, 2), nullable=False)
    address = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    rental_status = Column(
        Enum(ListingRentalStatus, name="listing_rental_status", native_enum=False),
        nullable=False,
        default=ListingRentalStatus.AVAILABLE,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    rental_requests = relationship(
        "RentalRequest", back_populates="listing", cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self):
        return f"<Listing(id={self.id}, title='{self.title}', available={self.is_available})>"


class RentalRequest(Base):
    """A renter's proposal to rent a listing for a date range."""

    __tablename__ = "rental_requests"
    __table_args__ = (
        Index("ix_rental_requests_status_payment", "status", "payment_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_id = Column(
        Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    renter_user_id = Column(String(255), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    message = Column(Text, nullable=True)
    status = Column(
        Enum(RentalRequestStatus, name="rental_request_status", native_enum=False),
        nullable=False,
        default=RentalRequestStatus.PENDING,
    )
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False),
        nullable=True,
    )
    denial_reason = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    renter_return_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    owner_return_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    listing = relationship("Listing", back_populates="rental_requests")
    ratings = relationship(
        "Rating", back_populates="rental_request", cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self):
        return f"<RentalRequest(id={self.id}, listing_id={self.listing_id}, status='{self.status}')>"


class Rating(Base):
    """Feedback left by one side of a completed rental.

    The renter rates the item and its owner; the owner rates the renter. One
    rating per side per request, resubmission overwrites it.
    """

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("rental_request_id", "rater_role", name="uq_ratings_request_rater"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    rental_request_id = Column(
        Integer, ForeignKey("rental_requests.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    listing_id = Column(
        Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    rater_user_id = Column(String(255), nullable=False)
    rated_user_id = Column(String(255), nullable=False, index=True)
    rater_role = Column(Enum(RaterRole, name="rater_role", native_enum=False), nullable=False)
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    rental_request = relationship("RentalRequest", back_populates="ratings")

    def __repr__(self):
        return f"<Rating(id={self.id}, request={self.rental_request_id}, by={self.rater_role}, rating={self.rating})>"


class Conversation(Base):
    """Direct message thread between two members.

    Participants are stored in sorted order so each pair has exactly one thread.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("participant_a", "participant_b", name="uq_conversations_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_a = Column(String(255), nullable=False, index=True)
    participant_b = Column(String(255), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="SET NULL"), nullable=True)
    last_message_preview = Column(String(200), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan",
        order_by="Message.created_at",
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    sender_user_id = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    conversation = relationship("Conversation", back_populates="messages")
