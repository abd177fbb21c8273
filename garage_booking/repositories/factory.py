"""
Repository Factory for the garage booking engine

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .catalog_repository import CatalogRepository
    from .coupon_repository import CouponRepository
    from .garage_repository import GarageRepository
    from .job_repository import JobRepository
    from .notification_repository import NotificationRepository
    from .pre_booking_repository import PreBookingRepository
    from .slot_allocation_repository import SlotAllocationRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model: Any) -> BaseRepository:
        return BaseRepository(db, model)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_slot_allocation_repository(db: Session) -> "SlotAllocationRepository":
        """Create repository for slot conflict queries."""
        from .slot_allocation_repository import SlotAllocationRepository

        return SlotAllocationRepository(db)

    @staticmethod
    def create_garage_repository(db: Session) -> "GarageRepository":
        from .garage_repository import GarageRepository

        return GarageRepository(db)

    @staticmethod
    def create_catalog_repository(db: Session) -> "CatalogRepository":
        from .catalog_repository import CatalogRepository

        return CatalogRepository(db)

    @staticmethod
    def create_coupon_repository(db: Session) -> "CouponRepository":
        from .coupon_repository import CouponRepository

        return CouponRepository(db)

    @staticmethod
    def create_job_repository(db: Session) -> "JobRepository":
        from .job_repository import JobRepository

        return JobRepository(db)

    @staticmethod
    def create_pre_booking_repository(db: Session) -> "PreBookingRepository":
        from .pre_booking_repository import PreBookingRepository

        return PreBookingRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
