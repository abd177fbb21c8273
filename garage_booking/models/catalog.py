"""
Services, sub-services and packages a garage offers.

A sub-service is offered by a garage only through a ``GarageService`` row of
that garage. ``GarageSubServicePrice`` overrides the default sub-service
price for a specific automobile make.
"""

from sqlalchemy import Column, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class GarageService(Base):
    __tablename__ = "garage_services"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(String(26), nullable=False)

    sub_services = relationship(
        "GarageSubService", back_populates="garage_service", cascade="all, delete-orphan"
    )


class GarageSubService(Base):
    __tablename__ = "garage_sub_services"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_service_id = Column(
        String(26),
        ForeignKey("garage_services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sub_service_id = Column(String(26), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=True)

    garage_service = relationship("GarageService", back_populates="sub_services")
    make_prices = relationship(
        "GarageSubServicePrice", back_populates="garage_sub_service", cascade="all, delete-orphan"
    )


class GarageSubServicePrice(Base):
    """Make-specific price for a garage sub-service."""

    __tablename__ = "garage_sub_service_prices"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_sub_service_id = Column(
        String(26),
        ForeignKey("garage_sub_services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    automobile_make_id = Column(String(26), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    garage_sub_service = relationship("GarageSubService", back_populates="make_prices")

    __table_args__ = (
        UniqueConstraint(
            "garage_sub_service_id",
            "automobile_make_id",
            name="uq_garage_sub_service_prices_make",
        ),
    )


class GaragePackage(Base):
    __tablename__ = "garage_packages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
