"""Coupon lookup and redemption counting."""

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.coupon import Coupon
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CouponRepository(BaseRepository[Coupon]):
    def __init__(self, db: Session):
        super().__init__(db, Coupon)

    def get_by_code(self, garage_id: str, code: str, for_update: bool = False) -> Optional[Coupon]:
        query = self.db.query(Coupon).filter(Coupon.garage_id == garage_id, Coupon.code == code)
        if for_update:
            query = query.with_for_update()
        return self._execute_first(query)

    def increment_redemptions(self, coupon: Coupon) -> bool:
        """
        Bump ``customer_redemptions`` by one while the coupon is under its limit.

        The limit is part of the UPDATE itself, so two bookings racing for the
        last redemption cannot both count.

        Returns:
            False when the limit was already reached and nothing changed
        """
        try:
            updated = (
                self.db.query(Coupon)
                .filter(
                    Coupon.id == coupon.id,
                    or_(
                        Coupon.redemptions.is_(None),
                        Coupon.customer_redemptions < Coupon.redemptions,
                    ),
                )
                .update(
                    {Coupon.customer_redemptions: Coupon.customer_redemptions + 1},
                    synchronize_session=False,
                )
            )
            self.db.flush()
            self.db.refresh(coupon)
        except SQLAlchemyError as e:
            self.logger.error(f"Error incrementing redemptions of coupon {coupon.id}: {str(e)}")
            raise RepositoryException(f"Failed to redeem coupon: {str(e)}")
        return updated > 0
