"""
Booking schemas for the garage booking engine.

Each lifecycle operation gets its own request model so an operation can only
touch the fields it owns. Times travel as ``HH:MM`` strings; booked slots
are stored exactly as received.
"""

from datetime import date, datetime, time
import re
from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from ..core.enums import DiscountType
from ..models.booking import BookingStatus
from .base import Money, StandardizedModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
HHMM_REGEX = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def _parse_time(value: object) -> object:
    """Accept ``HH:MM`` (and ``HH:MM:SS``) strings."""
    if isinstance(value, str):
        try:
            parts = value.strip().split(":")
            if len(parts) not in (2, 3):
                raise ValueError
            return time(*(int(p) for p in parts))
        except (ValueError, TypeError):
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    return value


def _check_discount(discount_type: Optional[DiscountType], amount: Optional[Any]) -> None:
    if amount is None:
        return
    if amount < 0:
        raise ValueError("discount_amount must not be negative")
    if discount_type == DiscountType.PERCENTAGE and amount > 100:
        raise ValueError("percentage discount_amount must be between 0 and 100")


class BookedSlot(StrictRequestModel):
    """Half-open ``[start_time, end_time)`` range on the job date."""

    start_time: str = Field(..., description="Slot start, HH:MM")
    end_time: str = Field(..., description="Slot end, HH:MM")

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        candidate = v.strip()
        if not HHMM_REGEX.fullmatch(candidate):
            raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
        return candidate

    @model_validator(mode="after")
    def _ordered(self) -> "BookedSlot":
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        return self


class _BookingDiscountMixin(StrictRequestModel):
    discount_type: Optional[DiscountType] = Field(None, description="Garage owner discount kind")
    discount_amount: Optional[Money] = Field(None, description="Garage owner discount value")

    @field_validator("discount_type", mode="before")
    @classmethod
    def _coerce_discount_type(cls, v: object) -> object:
        if isinstance(v, str):
            return DiscountType.coerce(v)
        return v

    @model_validator(mode="after")
    def _discount_in_range(self) -> "_BookingDiscountMixin":
        _check_discount(self.discount_type, self.discount_amount)
        return self


class _BookingWriteFields(_BookingDiscountMixin):
    """Vehicle, schedule, slot and line-item fields shared by create and update."""

    automobile_make_id: str
    automobile_model_id: str
    car_registration_no: str = Field(..., min_length=1, max_length=64)
    car_registration_year: Optional[int] = Field(None, ge=1900, le=2100)
    additional_information: Optional[str] = Field(None, max_length=2000)
    fuel: Optional[str] = Field(None, max_length=50)
    transmission: Optional[str] = Field(None, max_length=50)

    job_start_date: date
    job_start_time: time
    job_end_time: Optional[time] = None
    expert_id: Optional[str] = None
    booked_slots: List[BookedSlot] = Field(default_factory=list)

    booking_sub_service_ids: List[str] = Field(default_factory=list)
    booking_garage_package_ids: List[str] = Field(default_factory=list)

    @field_validator("job_start_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "job_start_date")

    @field_validator("job_start_time", "job_end_time", mode="before")
    @classmethod
    def _parse_time_string(cls, v: object) -> object:
        return _parse_time(v)

    @field_validator("car_registration_no")
    @classmethod
    def _strip_registration(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("car_registration_no must not be blank")
        return cleaned

    @model_validator(mode="after")
    def _end_after_start(self) -> "_BookingWriteFields":
        if self.job_end_time is not None and self.job_end_time <= self.job_start_time:
            raise ValueError("job_end_time must be after job_start_time")
        return self

    def slot_payload(self) -> List[dict]:
        return [slot.model_dump() for slot in self.booked_slots]


class BookingCreate(_BookingWriteFields):
    """Garage owner creates a booking for a customer."""

    garage_id: str
    customer_id: str
    coupon_code: Optional[str] = Field(None, max_length=64)

    @field_validator("coupon_code")
    @classmethod
    def _blank_coupon_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class BookingUpdate(_BookingWriteFields):
    """
    Replace the mutable fields of a booking.

    Status, customer and coupon are not writable here; status moves through
    change-status and confirm.
    """

    id: str
    garage_id: str


class BookingStatusChange(StrictRequestModel):
    id: str
    garage_id: str
    status: Literal["pending", "confirmed", "rejected_by_garage_owner"]


class BookingConfirm(_BookingDiscountMixin):
    """
    Confirm a booking, optionally adjusting schedule, price and owner discount.

    Only fields present in the request are written.
    """

    id: str
    garage_id: str
    job_start_date: Optional[date] = None
    job_start_time: Optional[time] = None
    job_end_time: Optional[time] = None
    price: Optional[Money] = None

    @field_validator("job_start_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "job_start_date")

    @field_validator("job_start_time", "job_end_time", mode="before")
    @classmethod
    def _parse_time_string(cls, v: object) -> object:
        return _parse_time(v)

    @field_validator("price")
    @classmethod
    def _price_not_negative(cls, v: Optional[Any]) -> Optional[Any]:
        if v is not None and v < 0:
            raise ValueError("price must not be negative")
        return v


class BookingListFilters(StrictRequestModel):
    search_key: Optional[str] = Field(None, max_length=64)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(1, ge=1)
    per_page: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def _range_ordered(self) -> "BookingListFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class BookingSubServiceResponse(StandardizedModel):
    sub_service_id: str
    price: Money


class BookingPackageResponse(StandardizedModel):
    garage_package_id: str
    price: Money


class BookingResponse(StandardizedModel):
    id: str
    garage_id: str
    customer_id: str
    pre_booking_id: Optional[str] = None
    automobile_make_id: str
    automobile_model_id: str
    car_registration_no: str
    car_registration_year: Optional[int] = None
    additional_information: Optional[str] = None
    fuel: Optional[str] = None
    transmission: Optional[str] = None
    job_start_date: date
    job_start_time: Optional[time] = None
    job_end_time: Optional[time] = None
    expert_id: Optional[str] = None
    booked_slots: List[BookedSlot] = Field(default_factory=list)
    status: BookingStatus
    created_from: str
    created_by: Optional[str] = None
    price: Money
    discount_type: Optional[str] = None
    discount_amount: Optional[Money] = None
    coupon_code: Optional[str] = None
    coupon_discount_type: Optional[str] = None
    coupon_discount_amount: Optional[Money] = None
    final_price: Money
    sub_services: List[BookingSubServiceResponse] = Field(default_factory=list)
    packages: List[BookingPackageResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
