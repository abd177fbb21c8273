"""Job materialized from a confirmed garage-owner booking."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.sql import func
import ulid

from ..database import Base


class JobStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobPaymentStatus(str, Enum):
    DUE = "due"
    PARTIAL = "partial"
    COMPLETE = "complete"


class Job(Base):
    """
    Work order created from a booking.

    Copies the vehicle, schedule and pricing of the booking; from then on it
    follows its own lifecycle and is never written back by the booking
    engine.
    """

    __tablename__ = "jobs"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id = Column(String(26), nullable=False)

    automobile_make_id = Column(String(26), nullable=False)
    automobile_model_id = Column(String(26), nullable=False)
    car_registration_no = Column(String(64), nullable=False)
    car_registration_year = Column(Integer, nullable=True)
    additional_information = Column(Text, nullable=True)
    fuel = Column(String(50), nullable=True)
    transmission = Column(String(50), nullable=True)

    job_start_date = Column(Date, nullable=False)
    job_start_time = Column(Time, nullable=True)
    job_end_time = Column(Time, nullable=True)

    price = Column(Numeric(10, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=True)
    coupon_discount_type = Column(String(20), nullable=True)
    coupon_discount_amount = Column(Numeric(10, 2), nullable=True)
    final_price = Column(Numeric(10, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=JobStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=JobPaymentStatus.DUE.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<Job {self.id}: booking={self.booking_id}, status={self.status}>"
