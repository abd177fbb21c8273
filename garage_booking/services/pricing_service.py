"""
Centralized pricing calculations for bookings.

Line items are priced from the garage catalog, then the garage owner's
discount and the coupon discount are both taken off the same base price.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.enums import DiscountType
from ..core.exceptions import ValidationException
from ..models.catalog import GarageSubService
from ..models.coupon import Coupon
from ..repositories import RepositoryFactory
from ..repositories.catalog_repository import CatalogRepository
from ..repositories.coupon_repository import CouponRepository
from .base import BaseService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

MAXIMUM_REDEMPTIONS_MESSAGE = "maximum people reached"


def to_money(value: Any) -> Decimal:
    """Coerce ints, floats, strings and None into a 2dp Decimal."""
    if value is None or value == "":
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid money amount: {value!r}") from exc
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CouponResolution:
    """Outcome of checking a coupon code against a garage and a base amount."""

    success: bool
    discount_type: Optional[DiscountType] = None
    discount_amount: Optional[Decimal] = None
    message: Optional[str] = None
    coupon_id: Optional[str] = None


class PricingService(BaseService):
    """Compute line-item prices, discounts and final prices for bookings."""

    def __init__(
        self,
        db: Session,
        catalog_repository: Optional[CatalogRepository] = None,
        coupon_repository: Optional[CouponRepository] = None,
    ) -> None:
        super().__init__(db)
        self.catalog_repository = (
            catalog_repository or RepositoryFactory.create_catalog_repository(db)
        )
        self.coupon_repository = coupon_repository or RepositoryFactory.create_coupon_repository(db)

    # Discount arithmetic

    @staticmethod
    def apply_discount(
        base: Any, discount_type: Optional[Any], discount_amount: Optional[Any]
    ) -> Decimal:
        """
        Amount to take off ``base``.

        percentage: ``base * amount / 100`` rounded half-up to cents.
        flat: ``amount``. Missing type or amount: nothing.
        """
        kind = DiscountType.coerce(discount_type)
        amount = to_money(discount_amount)
        if kind is None or amount == ZERO:
            return ZERO
        if kind == DiscountType.PERCENTAGE:
            return (to_money(base) * amount / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
        return amount

    def compose_final_price(
        self,
        base: Any,
        owner_discount: Tuple[Optional[Any], Optional[Any]] = (None, None),
        coupon_discount: Tuple[Optional[Any], Optional[Any]] = (None, None),
    ) -> Decimal:
        """
        ``base - owner discount - coupon discount``, both against ``base``.

        Floored at zero when the two discounts together exceed the base.
        """
        base_amount = to_money(base)
        final = (
            base_amount
            - self.apply_discount(base_amount, *owner_discount)
            - self.apply_discount(base_amount, *coupon_discount)
        )
        if final < ZERO:
            self.logger.warning(
                f"Discounts exceed base price {base_amount}; final price floored at 0"
            )
            return ZERO
        return final

    # Catalog pricing

    def line_item_price(
        self, garage_sub_service: GarageSubService, automobile_make_id: str
    ) -> Decimal:
        """Make-specific price, else the sub-service default, else zero."""
        make_price = self.catalog_repository.get_make_price(
            garage_sub_service.id, automobile_make_id
        )
        if make_price is not None and make_price.price is not None:
            return to_money(make_price.price)
        if garage_sub_service.price is not None:
            return to_money(garage_sub_service.price)
        return ZERO

    def price_sub_services(
        self, garage_id: str, sub_service_ids: Sequence[str], automobile_make_id: str
    ) -> List[Tuple[str, Decimal]]:
        """
        Resolve requested sub-services to (sub_service_id, price).

        Raises:
            ValidationException: ``booking_sub_service_ids[i]`` when the garage
                does not offer the i-th sub-service
        """
        priced: List[Tuple[str, Decimal]] = []
        for index, sub_service_id in enumerate(sub_service_ids):
            garage_sub_service = self.catalog_repository.get_offered_sub_service(
                garage_id, sub_service_id
            )
            if garage_sub_service is None:
                raise ValidationException.for_field(
                    f"booking_sub_service_ids[{index}]", "invalid service"
                )
            priced.append(
                (
                    garage_sub_service.sub_service_id,
                    self.line_item_price(garage_sub_service, automobile_make_id),
                )
            )
        return priced

    def price_packages(
        self, garage_id: str, package_ids: Sequence[str]
    ) -> List[Tuple[str, Decimal]]:
        """
        Resolve requested garage packages to (garage_package_id, price).

        Raises:
            ValidationException: ``booking_garage_package_ids[i]`` for an unknown package
        """
        priced: List[Tuple[str, Decimal]] = []
        for index, package_id in enumerate(package_ids):
            package = self.catalog_repository.get_package(garage_id, package_id)
            if package is None:
                raise ValidationException.for_field(
                    f"booking_garage_package_ids[{index}]", "invalid package"
                )
            priced.append((package.id, to_money(package.price)))
        return priced

    # Coupons

    @BaseService.measure_operation("resolve_coupon_discount")
    def resolve_coupon_discount(
        self,
        garage_id: str,
        code: str,
        base_amount: Any,
        today: Optional[date] = None,
    ) -> CouponResolution:
        """
        Check ``code`` at ``garage_id`` for a booking worth ``base_amount``.

        A successful resolution counts as a redemption: the coupon's
        ``customer_redemptions`` is incremented once. Redemptions are never
        given back, even if the booking is later rejected or deleted.
        """
        coupon = self.coupon_repository.get_by_code(garage_id, code, for_update=True)
        failure = self._coupon_failure(coupon, to_money(base_amount), today or date.today())
        if failure is None and not self.coupon_repository.increment_redemptions(coupon):
            failure = MAXIMUM_REDEMPTIONS_MESSAGE
        if failure is not None:
            self.logger.info(f"Coupon {code!r} rejected for garage {garage_id}: {failure}")
            return CouponResolution(success=False, message=failure)

        assert coupon is not None
        return CouponResolution(
            success=True,
            discount_type=DiscountType.coerce(coupon.discount_type),
            discount_amount=to_money(coupon.discount_amount),
            coupon_id=coupon.id,
        )

    @staticmethod
    def _coupon_failure(coupon: Optional[Coupon], base: Decimal, today: date) -> Optional[str]:
        if coupon is None:
            return "no coupon is found"
        if not coupon.is_active:
            return "coupon is not active"
        if coupon.coupon_start_date and today < coupon.coupon_start_date:
            return "coupon is not active yet"
        if coupon.coupon_end_date and today > coupon.coupon_end_date:
            return "coupon expired"
        if coupon.min_total is not None and base < to_money(coupon.min_total):
            return f"minimum limit is {to_money(coupon.min_total)}"
        if coupon.max_total is not None and base > to_money(coupon.max_total):
            return f"maximum limit is {to_money(coupon.max_total)}"
        if coupon.redemptions is not None and (coupon.customer_redemptions or 0) >= coupon.redemptions:
            return MAXIMUM_REDEMPTIONS_MESSAGE
        return None
