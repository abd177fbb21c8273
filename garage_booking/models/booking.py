"""
Booking model for the garage booking engine.

A booking reserves an expert's time slots at a garage for one vehicle on
``job_start_date``. Line items (sub-services and packages) are snapshotted
into child rows together with the price that applied when they were chosen.

Lifecycle: pending -> confirmed -> converted_to_job (terminal), with a side
branch to rejected_by_garage_owner. A converted booking is immutable.
"""

from enum import Enum
import logging
from typing import Any, Dict, List

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED_BY_GARAGE_OWNER = "rejected_by_garage_owner"
    CONVERTED_TO_JOB = "converted_to_job"  # Terminal


class BookingOrigin(str, Enum):
    """Which side of the platform created the booking."""

    GARAGE_OWNER_SIDE = "garage_owner_side"
    CUSTOMER_SIDE = "customer_side"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id = Column(String(26), nullable=False, index=True)
    pre_booking_id = Column(
        String(26), ForeignKey("pre_bookings.id", ondelete="SET NULL"), nullable=True
    )

    # Vehicle
    automobile_make_id = Column(String(26), nullable=False)
    automobile_model_id = Column(String(26), nullable=False)
    car_registration_no = Column(String(64), nullable=False, index=True)
    car_registration_year = Column(Integer, nullable=True)
    fuel = Column(String(50), nullable=True)
    transmission = Column(String(50), nullable=True)
    additional_information = Column(Text, nullable=True)

    # Schedule
    job_start_date = Column(Date, nullable=False)
    job_start_time = Column(Time, nullable=True)
    job_end_time = Column(Time, nullable=True)
    expert_id = Column(String(26), nullable=True)
    booked_slots = Column(JSON, nullable=False, default=list)

    status = Column(String(32), nullable=False, default=BookingStatus.PENDING.value, index=True)
    created_from = Column(String(32), nullable=False, default=BookingOrigin.GARAGE_OWNER_SIDE.value)
    created_by = Column(String(26), nullable=True)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=True)
    coupon_code = Column(String(64), nullable=True)
    coupon_discount_type = Column(String(20), nullable=True)
    coupon_discount_amount = Column(Numeric(10, 2), nullable=True)
    final_price = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    garage = relationship("Garage")
    pre_booking = relationship("PreBooking")
    sub_services = relationship(
        "BookingSubService",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingSubService.position",
    )
    packages = relationship(
        "BookingPackage",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingPackage.position",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'rejected_by_garage_owner', 'converted_to_job')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "created_from IN ('garage_owner_side', 'customer_side')",
            name="ck_bookings_created_from",
        ),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("final_price >= 0", name="check_final_price_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: garage={self.garage_id}, expert={self.expert_id}, "
            f"date={self.job_start_date}, status={self.status}>"
        )

    @property
    def is_converted(self) -> bool:
        return self.status == BookingStatus.CONVERTED_TO_JOB.value

    @property
    def holds_slots(self) -> bool:
        """Rejected bookings release their slots."""
        return self.status != BookingStatus.REJECTED_BY_GARAGE_OWNER.value

    def slot_list(self) -> List[Dict[str, Any]]:
        return list(self.booked_slots or [])


class BookingSubService(Base):
    """Sub-service chosen for a booking, with the price that applied at the time."""

    __tablename__ = "booking_sub_services"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sub_service_id = Column(String(26), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)

    booking = relationship("Booking", back_populates="sub_services")


class BookingPackage(Base):
    """Garage package chosen for a booking, with its price at booking time."""

    __tablename__ = "booking_packages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    garage_package_id = Column(
        String(26), ForeignKey("garage_packages.id", ondelete="CASCADE"), nullable=False
    )
    price = Column(Numeric(10, 2), nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)

    booking = relationship("Booking", back_populates="packages")


Index("ix_bookings_expert_date", Booking.expert_id, Booking.job_start_date)
