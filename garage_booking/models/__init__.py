"""
Database models for the garage booking engine.

- Garage catalog: garages, opening hours, supported makes/models
- Services, sub-services, packages and make-specific prices
- Coupons
- Bookings with their line items, and the jobs they convert into
- Pre-bookings and job bids
- Notification templates and notifications
"""

from .booking import Booking, BookingOrigin, BookingPackage, BookingStatus, BookingSubService
from .catalog import GaragePackage, GarageService, GarageSubService, GarageSubServicePrice
from .coupon import Coupon
from .garage import Garage, GarageAutomobileMake, GarageAutomobileModel, GarageTime
from .job import Job, JobPaymentStatus, JobStatus
from .notification import (
    Notification,
    NotificationStatus,
    NotificationTemplate,
    NotificationTemplateType,
)
from .pre_booking import JobBid, JobBidStatus, PreBooking, PreBookingStatus

__all__ = [
    "Booking",
    "BookingOrigin",
    "BookingPackage",
    "BookingStatus",
    "BookingSubService",
    "Coupon",
    "Garage",
    "GarageAutomobileMake",
    "GarageAutomobileModel",
    "GaragePackage",
    "GarageService",
    "GarageSubService",
    "GarageSubServicePrice",
    "GarageTime",
    "Job",
    "JobBid",
    "JobBidStatus",
    "JobPaymentStatus",
    "JobStatus",
    "Notification",
    "NotificationStatus",
    "NotificationTemplate",
    "NotificationTemplateType",
    "PreBooking",
    "PreBookingStatus",
]
