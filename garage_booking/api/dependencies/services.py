"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.pricing_service import PricingService
from ...services.slot_validator import SlotValidator
from ...database import get_db


def get_slot_validator(db: Session = Depends(get_db)) -> SlotValidator:
    return SlotValidator(db)


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    slot_validator: SlotValidator = Depends(get_slot_validator),
    pricing_service: PricingService = Depends(get_pricing_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance for dependency injection.

    All collaborators share the request's database session, so one
    lifecycle operation is one transaction.
    """
    return BookingService(
        db,
        slot_validator=slot_validator,
        pricing_service=pricing_service,
        notification_service=notification_service,
    )
