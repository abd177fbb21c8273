"""
Booking Repository for the garage booking engine

Implements data access for bookings and their owned line items:
- Tenant-scoped lookups (booking id + garage id)
- Filtered, paginated garage listings
- Delete-then-recreate replacement of line items
"""

from datetime import date, datetime, time
from decimal import Decimal
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingPackage, BookingStatus, BookingSubService
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_for_garage(self, booking_id: str, garage_id: str) -> Optional[Booking]:
        """
        Load a booking only if it belongs to ``garage_id``.

        Bookings of other garages are indistinguishable from missing ones.
        """
        query = (
            self.db.query(Booking)
            .options(selectinload(Booking.sub_services), selectinload(Booking.packages))
            .filter(Booking.id == booking_id, Booking.garage_id == garage_id)
        )
        return self._execute_first(query)

    def list_for_garage(
        self,
        garage_id: str,
        *,
        search_key: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[Booking], int]:
        """
        Bookings of a garage that have not been converted into jobs.

        ``start_date``/``end_date`` bound ``created_at`` inclusively.
        Results are newest first.

        Returns:
            (page of bookings, total matching rows)
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.garage_id == garage_id,
                Booking.status != BookingStatus.CONVERTED_TO_JOB.value,
            )
            if search_key:
                query = query.filter(Booking.car_registration_no.like(f"%{search_key}%"))
            if start_date:
                query = query.filter(
                    Booking.created_at >= datetime.combine(start_date, time.min)
                )
            if end_date:
                query = query.filter(
                    Booking.created_at <= datetime.combine(end_date, time.max)
                )

            total = query.count()
            items = (
                query.options(selectinload(Booking.sub_services), selectinload(Booking.packages))
                .order_by(Booking.created_at.desc(), Booking.id.desc())
                .offset((page - 1) * per_page)
                .limit(per_page)
                .all()
            )
            return items, total
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for garage {garage_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def replace_line_items(
        self,
        booking: Booking,
        sub_services: Sequence[Tuple[str, Decimal]],
        packages: Sequence[Tuple[str, Decimal]],
    ) -> None:
        """
        Delete every existing line item of ``booking`` and insert the given ones.

        Args:
            booking: Booking being written
            sub_services: (sub_service_id, price) in request order
            packages: (garage_package_id, price) in request order
        """
        try:
            booking.sub_services.clear()
            booking.packages.clear()
            self.db.flush()
            for position, (sub_service_id, price) in enumerate(sub_services):
                booking.sub_services.append(
                    BookingSubService(sub_service_id=sub_service_id, price=price, position=position)
                )
            for position, (package_id, price) in enumerate(packages):
                booking.packages.append(
                    BookingPackage(garage_package_id=package_id, price=price, position=position)
                )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing line items of booking {booking.id}: {str(e)}")
            raise RepositoryException(f"Failed to replace booking line items: {str(e)}")
