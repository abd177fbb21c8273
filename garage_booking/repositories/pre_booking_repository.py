"""Pre-booking and job bid access for the bidding flow."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.pre_booking import JobBid, JobBidStatus, PreBooking, PreBookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PreBookingRepository(BaseRepository[PreBooking]):
    def __init__(self, db: Session):
        super().__init__(db, PreBooking)

    def get_bid(self, bid_id: str) -> Optional[JobBid]:
        return self._execute_first(self.db.query(JobBid).filter(JobBid.id == bid_id))

    def reopen(self, pre_booking_id: str) -> Optional[PreBooking]:
        """
        Put a pre-booking back up for bidding.

        The previously selected bid is marked ``canceled_after_booking`` and
        the selection is cleared. Returns None when the pre-booking is gone.
        """
        pre_booking = self.get_by_id(pre_booking_id)
        if pre_booking is None:
            self.logger.warning(f"Pre-booking {pre_booking_id} not found; nothing to reopen")
            return None

        selected_bid_id = pre_booking.selected_bid_id
        if selected_bid_id:
            bid = self.get_bid(selected_bid_id)
            if bid is not None:
                bid.status = JobBidStatus.CANCELED_AFTER_BOOKING.value
            else:
                self.logger.warning(
                    f"Selected bid {selected_bid_id} of pre-booking {pre_booking_id} not found"
                )

        return self.update(
            pre_booking, status=PreBookingStatus.PENDING.value, selected_bid_id=None
        )
