"""Notification templates and notification rows."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.notification import Notification, NotificationTemplate
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def get_template(self, template_type: str) -> Optional[NotificationTemplate]:
        return self._execute_first(
            self.db.query(NotificationTemplate).filter(NotificationTemplate.type == template_type)
        )

    def list_for_booking(self, booking_id: str) -> List[Notification]:
        return self._execute_query(
            self.db.query(Notification)
            .filter(Notification.booking_id == booking_id)
            .order_by(Notification.created_at, Notification.id)
        )
