"""Garage-scoped discount coupons."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
import ulid

from ..database import Base


class Coupon(Base):
    """
    A discount code redeemable at one garage.

    ``redemptions`` is the redemption limit (NULL means unlimited) and
    ``customer_redemptions`` counts successful applications. The counter is
    only ever incremented.
    """

    __tablename__ = "coupons"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    garage_id = Column(
        String(26), ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=True)
    code = Column(String(64), nullable=False)
    discount_type = Column(String(20), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)
    min_total = Column(Numeric(10, 2), nullable=True)
    max_total = Column(Numeric(10, 2), nullable=True)
    redemptions = Column(Integer, nullable=True)
    customer_redemptions = Column(Integer, nullable=False, default=0)
    coupon_start_date = Column(Date, nullable=True)
    coupon_end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (UniqueConstraint("garage_id", "code", name="uq_coupons_garage_code"),)

    def __repr__(self) -> str:
        return f"<Coupon {self.code}: garage={self.garage_id}, used={self.customer_redemptions}>"
