"""
Repository layer for the garage booking engine.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- BookingRepository: Bookings and their line items
- SlotAllocationRepository: Slot holders per expert and date
- GarageRepository / CatalogRepository / CouponRepository: collaborator lookups
- JobRepository / PreBookingRepository / NotificationRepository: side effects

Usage:
    from garage_booking.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_for_garage(booking_id, garage_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .catalog_repository import CatalogRepository
from .coupon_repository import CouponRepository
from .factory import RepositoryFactory
from .garage_repository import GarageRepository
from .job_repository import JobRepository
from .notification_repository import NotificationRepository
from .pre_booking_repository import PreBookingRepository
from .slot_allocation_repository import SlotAllocationRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CatalogRepository",
    "CouponRepository",
    "GarageRepository",
    "JobRepository",
    "NotificationRepository",
    "PreBookingRepository",
    "RepositoryFactory",
    "SlotAllocationRepository",
]
