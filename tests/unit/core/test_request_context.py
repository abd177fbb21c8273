import logging

from garage_booking.core.enums import DiscountType, PermissionName
from garage_booking.core.request_context import (
    RequestIdFilter,
    get_request_id_value,
    reset_request_id,
    resolve_request_id,
    set_request_id,
)
from garage_booking.core.ulid_helper import is_valid_ulid
from garage_booking.principal import RequestContext


def test_resolve_request_id_keeps_safe_ids_and_mints_otherwise():
    assert resolve_request_id("req-123") == "req-123"
    assert is_valid_ulid(resolve_request_id(None))
    assert is_valid_ulid(resolve_request_id("bad id with spaces"))


def test_request_id_filter_stamps_records():
    token = set_request_id("abc")
    try:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record)
        assert record.request_id == "abc"
    finally:
        reset_request_id(token)
    assert get_request_id_value() == "no-request"


def test_request_context_permissions_and_claims():
    ctx = RequestContext.build(
        user_id="owner",
        permissions=[PermissionName.BOOKING_CREATE, " booking_view "],
        garage_ids=["g1"],
    )

    assert ctx.has_permission("booking_create")
    assert ctx.has_permission(PermissionName.BOOKING_VIEW)
    assert not ctx.has_permission(PermissionName.BOOKING_DELETE)
    assert ctx.owns_garage("g1")
    assert not ctx.owns_garage("g2")


def test_discount_type_coercion():
    assert DiscountType.coerce("fixed") is DiscountType.FLAT
    assert DiscountType.coerce("Percentage") is DiscountType.PERCENTAGE
    assert DiscountType.coerce("none") is None
    assert DiscountType.coerce("") is None
    assert DiscountType.coerce(None) is None
