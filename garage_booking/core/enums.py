"""
Core enums for the garage booking engine.

Permission names mirror the role/permission records managed by the
authorization service; the booking engine only reads them from the
request context.
"""

from enum import Enum


class PermissionName(str, Enum):
    """Permissions checked by the booking lifecycle."""

    BOOKING_CREATE = "booking_create"
    BOOKING_UPDATE = "booking_update"
    BOOKING_VIEW = "booking_view"
    BOOKING_DELETE = "booking_delete"


class DiscountType(str, Enum):
    """How a discount amount is applied to a base price."""

    PERCENTAGE = "percentage"
    FLAT = "flat"

    @classmethod
    def coerce(cls, value: "DiscountType | str | None") -> "DiscountType | None":
        """Normalize stored/legacy values ('fixed' is an alias of 'flat')."""
        if value is None or value == "":
            return None
        if isinstance(value, DiscountType):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("", "none"):
            return None
        if normalized == "fixed":
            return cls.FLAT
        return cls(normalized)
