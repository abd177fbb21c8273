from __future__ import annotations

from datetime import time
from decimal import Decimal

from pydantic import ValidationError
import pytest

from garage_booking.core.enums import DiscountType
from garage_booking.schemas.base_responses import PaginatedResponse
from garage_booking.schemas.booking import (
    BookedSlot,
    BookingConfirm,
    BookingCreate,
    BookingListFilters,
    BookingStatusChange,
    BookingUpdate,
)


def _create_payload(**overrides):
    payload = {
        "garage_id": "g1",
        "customer_id": "c1",
        "automobile_make_id": "make",
        "automobile_model_id": "model",
        "car_registration_no": "  AB12 CDE ",
        "job_start_date": "2030-01-07",
        "job_start_time": "09:00",
        "job_end_time": "10:00",
        "expert_id": "e1",
        "booked_slots": [{"start_time": "09:00", "end_time": "10:00"}],
    }
    payload.update(overrides)
    return payload


class TestBookingCreate:
    def test_parses_times_and_strips_registration(self):
        data = BookingCreate(**_create_payload())

        assert data.job_start_time == time(9, 0)
        assert data.car_registration_no == "AB12 CDE"
        assert data.slot_payload() == [{"start_time": "09:00", "end_time": "10:00"}]
        assert data.booking_sub_service_ids == []

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            BookingCreate(**_create_payload(status="confirmed"))

    @pytest.mark.parametrize(
        "slot",
        [
            {"start_time": "10:00", "end_time": "09:00"},
            {"start_time": "10:00", "end_time": "10:00"},
            {"start_time": "9:00", "end_time": "10:00"},
            {"start_time": "24:00", "end_time": "25:00"},
        ],
    )
    def test_bad_slots(self, slot):
        with pytest.raises(ValidationError):
            BookingCreate(**_create_payload(booked_slots=[slot]))

    def test_end_time_must_follow_start_time(self):
        with pytest.raises(ValidationError):
            BookingCreate(**_create_payload(job_end_time="08:00"))

    def test_date_only(self):
        with pytest.raises(ValidationError):
            BookingCreate(**_create_payload(job_start_date="2030-01-07T09:00:00"))

    def test_discount_coercion_and_bounds(self):
        assert BookingCreate(**_create_payload(discount_type="fixed")).discount_type == DiscountType.FLAT
        assert BookingCreate(**_create_payload(discount_type="none")).discount_type is None

        with pytest.raises(ValidationError):
            BookingCreate(**_create_payload(discount_type="percentage", discount_amount=150))
        with pytest.raises(ValidationError):
            BookingCreate(**_create_payload(discount_type="flat", discount_amount=-1))

    def test_blank_coupon_is_none(self):
        assert BookingCreate(**_create_payload(coupon_code="  ")).coupon_code is None


def test_update_cannot_touch_status_customer_or_coupon():
    payload = _create_payload(id="b1")
    payload.pop("customer_id")
    BookingUpdate(**payload)

    for extra in ({"status": "pending"}, {"customer_id": "c2"}, {"coupon_code": "X"}):
        with pytest.raises(ValidationError):
            BookingUpdate(**{**payload, **extra})


def test_status_change_rejects_converted_to_job():
    BookingStatusChange(id="b1", garage_id="g1", status="rejected_by_garage_owner")
    with pytest.raises(ValidationError):
        BookingStatusChange(id="b1", garage_id="g1", status="converted_to_job")


def test_confirm_tracks_fields_sent():
    data = BookingConfirm(id="b1", garage_id="g1", price="120.50")

    assert data.price == Decimal("120.50")
    assert "price" in data.model_fields_set
    assert "discount_type" not in data.model_fields_set

    with pytest.raises(ValidationError):
        BookingConfirm(id="b1", garage_id="g1", price=-1)


def test_list_filters_reject_inverted_range():
    with pytest.raises(ValidationError):
        BookingListFilters(start_date="2030-01-08", end_date="2030-01-07")


def test_booked_slot_strips_whitespace():
    assert BookedSlot(start_time=" 09:00", end_time="10:00 ").start_time == "09:00"


def test_paginated_response_flags():
    page = PaginatedResponse[int].build(items=[1, 2], total=5, page=2, per_page=2)

    assert page.has_next and page.has_prev
    assert not PaginatedResponse[int].build(items=[5], total=5, page=3, per_page=2).has_next
