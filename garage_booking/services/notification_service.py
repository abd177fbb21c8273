"""
Notification Service for the garage booking engine

Writes one in-app notification row per booking lifecycle transition. The row
is inserted inside the caller's transaction, so a rolled-back booking
operation leaves no notification behind. Email delivery is an external
collaborator and out of scope here.
"""

import logging
from typing import Any, Mapping, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InvariantViolationException
from ..models.booking import Booking
from ..models.notification import Notification, NotificationStatus, NotificationTemplateType
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.notification_repository import NotificationRepository
from .base import BaseService

logger = logging.getLogger(__name__)

TemplateTypeLike = Union[NotificationTemplateType, str]


class NotificationService(BaseService):
    """
    Emits booking notifications against stored templates.

    A missing template is a configuration defect. By default it is logged
    and the notification skipped; with
    ``settings.notification_missing_template_fatal`` it aborts the operation.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[NotificationRepository] = None,
        missing_template_fatal: Optional[bool] = None,
    ) -> None:
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_notification_repository(db)
        self.missing_template_fatal = (
            settings.notification_missing_template_fatal
            if missing_template_fatal is None
            else missing_template_fatal
        )

    @BaseService.measure_operation("emit_notification")
    def emit(
        self,
        template_type: TemplateTypeLike,
        sender_id: Optional[str],
        receiver_id: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Notification]:
        """
        Insert an unread notification for ``receiver_id``.

        Args:
            template_type: One of ``NotificationTemplateType``
            sender_id: Usually the garage owner
            receiver_id: Usually the customer
            context: ``customer_id``, ``garage_id`` and ``booking_id`` references

        Returns:
            The notification row, or None when the template is missing and skipped

        Raises:
            InvariantViolationException: template missing and configured as fatal
        """
        type_value = (
            template_type.value
            if isinstance(template_type, NotificationTemplateType)
            else str(template_type)
        )
        ctx = dict(context or {})

        template = self.repository.get_template(type_value)
        if template is None:
            if self.missing_template_fatal:
                prometheus_metrics.record_notification(type_value, "template_missing_fatal")
                raise InvariantViolationException(
                    "notification template error",
                    details={"template_type": type_value},
                )
            prometheus_metrics.record_notification(type_value, "template_missing")
            self.logger.warning(
                f"Notification template {type_value!r} not found; notification skipped",
                extra={"template_type": type_value, "booking_id": ctx.get("booking_id")},
            )
            return None

        notification = self.repository.create(
            sender_id=sender_id,
            receiver_id=receiver_id,
            customer_id=ctx.get("customer_id"),
            garage_id=ctx.get("garage_id"),
            booking_id=ctx.get("booking_id"),
            notification_template_id=template.id,
            status=NotificationStatus.UNREAD.value,
        )
        prometheus_metrics.record_notification(type_value, "created")
        return notification

    def notify_customer(
        self, booking: Booking, template_type: TemplateTypeLike, garage_owner_id: str
    ) -> Optional[Notification]:
        """Garage owner -> customer notification about ``booking``."""
        return self.emit(
            template_type,
            sender_id=garage_owner_id,
            receiver_id=booking.customer_id,
            context={
                "customer_id": booking.customer_id,
                "garage_id": booking.garage_id,
                "booking_id": booking.id,
            },
        )
