"""
Slot allocation queries.

An expert's allocations on a date are the ``booked_slots`` of every booking
held against that expert and date, except rejected bookings which release
their slots.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SlotAllocationRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_slot_holders(
        self, expert_id: str, check_date: date, exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """
        Bookings holding slots for ``expert_id`` on ``check_date``.

        Args:
            expert_id: The expert whose calendar is checked
            check_date: The job date
            exclude_booking_id: Booking being updated, ignored in its own check

        Returns:
            Bookings ordered by start time, then id
        """
        query = self.db.query(Booking).filter(
            Booking.expert_id == expert_id,
            Booking.job_start_date == check_date,
            Booking.status != BookingStatus.REJECTED_BY_GARAGE_OWNER.value,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return self._execute_query(query.order_by(Booking.job_start_time, Booking.id))
