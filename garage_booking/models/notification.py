"""
Notification templates and the in-app notification rows emitted for
booking lifecycle transitions.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class NotificationTemplateType(str, Enum):
    BOOKING_CREATED_BY_GARAGE_OWNER = "booking_created_by_garage_owner"
    BOOKING_UPDATED_BY_GARAGE_OWNER = "booking_updated_by_garage_owner"
    BOOKING_STATUS_CHANGED_BY_GARAGE_OWNER = "booking_status_changed_by_garage_owner"
    BOOKING_REJECTED_BY_GARAGE_OWNER = "booking_rejected_by_garage_owner"
    BOOKING_CONFIRMED_BY_GARAGE_OWNER = "booking_confirmed_by_garage_owner"
    BOOKING_DELETED_BY_GARAGE_OWNER = "booking_deleted_by_garage_owner"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class NotificationTemplate(Base):
    __tablename__ = "notification_templates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    type = Column(String(64), nullable=False, unique=True, index=True)
    template = Column(Text, nullable=True)


class Notification(Base):
    """
    One event row per lifecycle transition.

    ``booking_id`` is a plain reference without a foreign key so the row
    survives the booking being deleted.
    """

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    sender_id = Column(String(26), nullable=True)
    receiver_id = Column(String(26), nullable=False, index=True)
    customer_id = Column(String(26), nullable=True)
    garage_id = Column(String(26), nullable=True, index=True)
    booking_id = Column(String(26), nullable=True, index=True)
    notification_template_id = Column(
        String(26), ForeignKey("notification_templates.id"), nullable=False
    )
    status = Column(String(20), nullable=False, default=NotificationStatus.UNREAD.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    template = relationship("NotificationTemplate")
