"""
Garage-side catalog records the booking engine reads.

These tables are owned by the garage management CRUD; the booking engine
never writes them. Weekday numbering on ``GarageTime.day`` is 0 = Sunday.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Garage(Base):
    __tablename__ = "garages"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(26), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    times = relationship("GarageTime", back_populates="garage", cascade="all, delete-orphan")
    automobile_makes = relationship(
        "GarageAutomobileMake", back_populates="garage", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Garage {self.id}: owner={self.owner_id}>"


class GarageTime(Base):
    """Opening hours for one weekday of a garage."""

    __tablename__ = "garage_times"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day = Column(Integer, nullable=False)
    opening_time = Column(Time, nullable=True)
    closing_time = Column(Time, nullable=True)
    is_closed = Column(Boolean, nullable=False, default=False)

    garage = relationship("Garage", back_populates="times")

    __table_args__ = (
        UniqueConstraint("garage_id", "day", name="uq_garage_times_garage_day"),
        CheckConstraint("day >= 0 AND day <= 6", name="ck_garage_times_day"),
    )


class GarageAutomobileMake(Base):
    """An automobile make the garage services."""

    __tablename__ = "garage_automobile_makes"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    automobile_make_id = Column(String(26), nullable=False)

    garage = relationship("Garage", back_populates="automobile_makes")
    models = relationship(
        "GarageAutomobileModel", back_populates="garage_make", cascade="all, delete-orphan"
    )


class GarageAutomobileModel(Base):
    """An automobile model supported under one of the garage's makes."""

    __tablename__ = "garage_automobile_models"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_automobile_make_id = Column(
        String(26),
        ForeignKey("garage_automobile_makes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    automobile_model_id = Column(String(26), nullable=False)

    garage_make = relationship("GarageAutomobileMake", back_populates="models")
