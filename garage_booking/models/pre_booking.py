"""Customer pre-bookings and the garage bids placed on them."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class PreBookingStatus(str, Enum):
    PENDING = "pending"
    BOOKED = "booked"


class JobBidStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELED_AFTER_BOOKING = "canceled_after_booking"


class PreBooking(Base):
    """A customer job request that garages bid on."""

    __tablename__ = "pre_bookings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    customer_id = Column(String(26), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=PreBookingStatus.PENDING.value)
    # Plain reference; job_bids already points back at pre_bookings.
    selected_bid_id = Column(String(26), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class JobBid(Base):
    __tablename__ = "job_bids"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    pre_booking_id = Column(
        String(26), ForeignKey("pre_bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    garage_id = Column(String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False)
    price = Column(Numeric(10, 2), nullable=True)
    status = Column(String(32), nullable=False, default=JobBidStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    pre_booking = relationship("PreBooking")
