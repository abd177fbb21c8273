from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from garage_booking.core.enums import DiscountType
from garage_booking.services.pricing_service import PricingService, to_money


@pytest.fixture
def pricing(db) -> PricingService:
    return PricingService(db)


class TestToMoney:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, Decimal("0.00")),
            ("", Decimal("0.00")),
            (10, Decimal("10.00")),
            (2.675, Decimal("2.68")),
            ("19.999", Decimal("20.00")),
        ],
    )
    def test_coercion(self, value, expected):
        assert to_money(value) == expected

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_money("ten")


class TestApplyDiscount:
    def test_percentage_rounds_half_up(self):
        assert PricingService.apply_discount(Decimal("33.33"), "percentage", 15) == Decimal("5.00")
        assert PricingService.apply_discount(Decimal("0.10"), "percentage", 5) == Decimal("0.01")

    def test_flat_is_the_amount(self):
        assert PricingService.apply_discount(50, DiscountType.FLAT, 7.5) == Decimal("7.50")

    def test_fixed_is_an_alias_of_flat(self):
        assert PricingService.apply_discount(50, "fixed", 5) == Decimal("5.00")

    @pytest.mark.parametrize("kind,amount", [(None, 10), ("percentage", None), ("none", 5)])
    def test_nothing_to_take_off(self, kind, amount):
        assert PricingService.apply_discount(50, kind, amount) == Decimal("0.00")


class TestComposeFinalPrice:
    def test_both_discounts_use_the_same_base(self, pricing):
        final = pricing.compose_final_price(
            Decimal("50.00"), ("percentage", 10), ("percentage", 10)
        )
        assert final == Decimal("40.00")

    def test_owner_percentage_and_flat_coupon(self, pricing):
        assert pricing.compose_final_price(50, ("percentage", 10), ("flat", 5)) == Decimal("40.00")

    def test_floor_at_zero(self, pricing, caplog):
        assert pricing.compose_final_price(10, ("flat", 8), ("flat", 8)) == Decimal("0.00")
        assert "floored at 0" in caplog.text

    def test_no_discounts(self, pricing):
        assert pricing.compose_final_price("12.5") == Decimal("12.50")


class TestCatalogPricing:
    def test_make_price_then_default_then_zero(self, pricing, garage_setup):
        priced = pricing.price_sub_services(
            garage_setup.garage_id,
            [
                garage_setup.sub_service_id,
                garage_setup.plain_sub_service_id,
                garage_setup.unpriced_sub_service_id,
            ],
            garage_setup.make_id,
        )

        assert priced == [
            (garage_setup.sub_service_id, Decimal("20.00")),
            (garage_setup.plain_sub_service_id, Decimal("15.00")),
            (garage_setup.unpriced_sub_service_id, Decimal("0.00")),
        ]

    def test_other_make_uses_default_price(self, pricing, garage_setup):
        priced = pricing.price_sub_services(
            garage_setup.garage_id, [garage_setup.sub_service_id], "another-make"
        )
        assert priced == [(garage_setup.sub_service_id, Decimal("25.00"))]

    def test_packages(self, pricing, garage_setup):
        assert pricing.price_packages(garage_setup.garage_id, [garage_setup.package_id]) == [
            (garage_setup.package_id, Decimal("30.00"))
        ]


class TestResolveCouponDiscount:
    def test_success_counts_a_redemption(self, db, pricing, garage_setup, make_coupon):
        coupon = make_coupon(code="TEN", discount_type="percentage", discount_amount=Decimal("10"))

        resolution = pricing.resolve_coupon_discount(garage_setup.garage_id, "TEN", Decimal("50"))

        assert resolution.success
        assert resolution.discount_type == DiscountType.PERCENTAGE
        assert resolution.discount_amount == Decimal("10.00")
        assert resolution.coupon_id == coupon.id
        db.refresh(coupon)
        assert coupon.customer_redemptions == 1

    def test_coupon_of_another_garage_is_not_found(self, pricing, make_coupon):
        make_coupon(code="MINE")

        resolution = pricing.resolve_coupon_discount("other-garage", "MINE", 50)

        assert not resolution.success
        assert resolution.message == "no coupon is found"

    @pytest.mark.parametrize(
        "overrides,base,message",
        [
            ({"is_active": False}, 50, "coupon is not active"),
            ({"coupon_start_date": date.today() + timedelta(days=1)}, 50, "coupon is not active yet"),
            ({"coupon_end_date": date.today() - timedelta(days=1)}, 50, "coupon expired"),
            ({"min_total": Decimal("60")}, 50, "minimum limit is 60.00"),
            ({"max_total": Decimal("40")}, 50, "maximum limit is 40.00"),
            ({"redemptions": 2, "customer_redemptions": 2}, 50, "maximum people reached"),
        ],
    )
    def test_failures(self, db, pricing, garage_setup, make_coupon, overrides, base, message):
        coupon = make_coupon(code="X", **overrides)
        before = coupon.customer_redemptions

        resolution = pricing.resolve_coupon_discount(garage_setup.garage_id, "X", base)

        assert not resolution.success
        assert resolution.message == message
        db.refresh(coupon)
        assert coupon.customer_redemptions == before

    def test_limit_is_enforced_by_the_increment(
        self, db, pricing, garage_setup, make_coupon, monkeypatch
    ):
        # Stale read: the coupon looked available but the last redemption went elsewhere
        coupon = make_coupon(code="LAST", redemptions=3, customer_redemptions=3)
        monkeypatch.setattr(PricingService, "_coupon_failure", staticmethod(lambda *args: None))

        resolution = pricing.resolve_coupon_discount(garage_setup.garage_id, "LAST", 50)

        assert not resolution.success
        assert resolution.message == "maximum people reached"
        db.refresh(coupon)
        assert coupon.customer_redemptions == 3

    def test_last_redemption_reaches_the_limit(self, db, pricing, garage_setup, make_coupon):
        coupon = make_coupon(code="LAST", redemptions=2, customer_redemptions=1)

        first = pricing.resolve_coupon_discount(garage_setup.garage_id, "LAST", 50)
        second = pricing.resolve_coupon_discount(garage_setup.garage_id, "LAST", 50)

        assert first.success
        assert second.message == "maximum people reached"
        db.refresh(coupon)
        assert coupon.customer_redemptions == 2

    def test_window_is_inclusive(self, pricing, garage_setup, make_coupon):
        today = date.today()
        make_coupon(code="TODAY", coupon_start_date=today, coupon_end_date=today)

        assert pricing.resolve_coupon_discount(garage_setup.garage_id, "TODAY", 50, today=today).success

    def test_uses_injected_repositories(self):
        coupons = MagicMock()
        coupons.get_by_code.return_value = None
        service = PricingService(MagicMock(), catalog_repository=MagicMock(), coupon_repository=coupons)

        resolution = service.resolve_coupon_discount("g", "CODE", 10)

        assert resolution.message == "no coupon is found"
        coupons.increment_redemptions.assert_not_called()
