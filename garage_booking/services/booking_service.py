"""
Booking Service for the garage booking engine

Handles the booking lifecycle driven by garage owners:
- Creating bookings with slot, opening-hours and catalog validation
- Updating bookings (line items are replaced wholesale)
- Status changes, including rejection which reopens a linked pre-booking
- Confirmation, which turns garage-owner bookings into jobs
- Deletion, listing and retrieval scoped to the owner's garage

Every mutation runs in one transaction. Slot checks and the writes they
guard run while holding the per-(expert, date) slot lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import DiscountType, PermissionName
from ..core.exceptions import (
    NotFoundException,
    StateConflictException,
    UnauthorizedException,
    ValidationException,
)
from ..core.slot_lock import slot_lock, slot_lock_key
from ..models.booking import Booking, BookingOrigin, BookingStatus
from ..models.garage import Garage
from ..models.job import Job, JobPaymentStatus, JobStatus
from ..models.notification import NotificationTemplateType
from ..principal import RequestContext
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..schemas.booking import (
    BookingConfirm,
    BookingCreate,
    BookingListFilters,
    BookingStatusChange,
    BookingUpdate,
)
from ..utils.time_helpers import garage_weekday, time_to_hhmm, time_within
from .base import BaseService
from .notification_service import NotificationService
from .pricing_service import ZERO, PricingService
from .slot_validator import SlotValidator

logger = logging.getLogger(__name__)

PERMISSION_DENIED_MESSAGE = "You can not perform this action"
NOT_GARAGE_OWNER_MESSAGE = (
    "you are not the owner of the garage or the requested garage does not exist."
)
BOOKING_NOT_FOUND_MESSAGE = "booking not found"

CONFIRMABLE_FIELDS = (
    "job_start_date",
    "job_start_time",
    "job_end_time",
    "price",
    "discount_type",
    "discount_amount",
)


@dataclass(frozen=True)
class BookingPage:
    items: List[Booking]
    total: int
    page: int
    per_page: int


def _discount_value(discount_type: Optional[Any]) -> Optional[str]:
    kind = DiscountType.coerce(discount_type)
    return kind.value if kind else None


def _sum_prices(*groups: Sequence[Tuple[str, Decimal]]) -> Decimal:
    total = ZERO
    for group in groups:
        for _, price in group:
            total += price
    return total


class BookingService(BaseService):
    """
    Service layer for booking lifecycle operations.

    Every public operation takes the caller's ``RequestContext`` explicitly.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        slot_validator: Optional[SlotValidator] = None,
        pricing_service: Optional[PricingService] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            repository: Optional BookingRepository instance
            slot_validator: Optional SlotValidator instance
            pricing_service: Optional PricingService instance
            notification_service: Optional NotificationService instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.garage_repository = RepositoryFactory.create_garage_repository(db)
        self.job_repository = RepositoryFactory.create_job_repository(db)
        self.pre_booking_repository = RepositoryFactory.create_pre_booking_repository(db)
        self.slot_validator = slot_validator or SlotValidator(db)
        self.pricing_service = pricing_service or PricingService(db)
        self.notification_service = notification_service or NotificationService(db)

    # Lifecycle operations

    @BaseService.measure_operation("create_booking")
    def create_booking(self, ctx: RequestContext, data: BookingCreate) -> Booking:
        """
        Create a pending booking on behalf of a garage owner.

        Returns:
            The committed booking with its line items

        Raises:
            UnauthorizedException: missing ``booking_create`` or not the garage owner
            ValidationException: closed day, start time outside opening hours,
                unsupported make/model, unknown sub-service/package, bad coupon
            SlotConflictException: requested slots overlap the expert's bookings
        """
        self.log_operation(
            "create_booking",
            user_id=ctx.user_id,
            garage_id=data.garage_id,
            expert_id=data.expert_id,
            job_start_date=str(data.job_start_date),
        )
        garage = self._authorize(ctx, PermissionName.BOOKING_CREATE, data.garage_id)
        slots = data.slot_payload()

        with slot_lock(self._slot_keys((data.expert_id, data.job_start_date))):
            with self.transaction():
                self._validate_garage_times(data.garage_id, data.job_start_date, data.job_start_time)
                self._validate_make_and_model(
                    data.garage_id, data.automobile_make_id, data.automobile_model_id
                )
                self.slot_validator.ensure_available(
                    None, slots, data.job_start_date, data.expert_id
                )

                booking = self.repository.create(
                    garage_id=data.garage_id,
                    customer_id=data.customer_id,
                    automobile_make_id=data.automobile_make_id,
                    automobile_model_id=data.automobile_model_id,
                    car_registration_no=data.car_registration_no,
                    car_registration_year=data.car_registration_year,
                    additional_information=data.additional_information,
                    fuel=data.fuel,
                    transmission=data.transmission,
                    job_start_date=data.job_start_date,
                    job_start_time=data.job_start_time,
                    job_end_time=data.job_end_time,
                    expert_id=data.expert_id,
                    booked_slots=slots,
                    status=BookingStatus.PENDING.value,
                    created_from=BookingOrigin.GARAGE_OWNER_SIDE.value,
                    created_by=ctx.user_id,
                    discount_type=_discount_value(data.discount_type),
                    discount_amount=data.discount_amount,
                    price=ZERO,
                    final_price=ZERO,
                )

                price = self._write_line_items(
                    booking,
                    data.booking_sub_service_ids,
                    data.booking_garage_package_ids,
                    data.automobile_make_id,
                )

                if data.coupon_code:
                    self._apply_coupon(booking, data.coupon_code, price)

                booking.final_price = self._final_price_of(booking)
                self.repository.flush()

                self.notification_service.notify_customer(
                    booking, NotificationTemplateType.BOOKING_CREATED_BY_GARAGE_OWNER, garage.owner_id
                )

        self.logger.info(f"Booking {booking.id} created for garage {booking.garage_id}")
        return booking

    @BaseService.measure_operation("update_booking")
    def update_booking(self, ctx: RequestContext, data: BookingUpdate) -> Booking:
        """
        Replace the mutable fields and line items of a booking.

        Price is recomputed from the new line items; the stored owner
        discount and the stored coupon discount are re-applied to it.

        Raises:
            NotFoundException: booking missing or owned by another garage
            StateConflictException: booking already converted to a job
            SlotConflictException: new slots overlap another booking
            ValidationException: unsupported make/model or unknown line item
        """
        self.log_operation(
            "update_booking", user_id=ctx.user_id, booking_id=data.id, garage_id=data.garage_id
        )
        garage = self._authorize(ctx, PermissionName.BOOKING_UPDATE, data.garage_id)
        booking = self._get_scoped_booking(data.id, data.garage_id)
        self._ensure_mutable(booking)
        slots = data.slot_payload()

        lock_keys = self._slot_keys(
            (data.expert_id, data.job_start_date),
            (booking.expert_id, booking.job_start_date),
        )
        with slot_lock(lock_keys):
            with self.transaction():
                self.db.refresh(booking)
                self._ensure_mutable(booking)
                self.slot_validator.ensure_available(
                    booking.id, slots, data.job_start_date, data.expert_id
                )
                self._validate_make_and_model(
                    data.garage_id, data.automobile_make_id, data.automobile_model_id
                )

                self.repository.update(
                    booking,
                    automobile_make_id=data.automobile_make_id,
                    automobile_model_id=data.automobile_model_id,
                    car_registration_no=data.car_registration_no,
                    car_registration_year=data.car_registration_year,
                    additional_information=data.additional_information,
                    fuel=data.fuel,
                    transmission=data.transmission,
                    job_start_date=data.job_start_date,
                    job_start_time=data.job_start_time,
                    job_end_time=data.job_end_time,
                    expert_id=data.expert_id,
                    booked_slots=slots,
                    discount_type=_discount_value(data.discount_type),
                    discount_amount=data.discount_amount,
                )

                self._write_line_items(
                    booking,
                    data.booking_sub_service_ids,
                    data.booking_garage_package_ids,
                    data.automobile_make_id,
                )
                booking.final_price = self._final_price_of(booking)
                self.repository.flush()

                self.notification_service.notify_customer(
                    booking, NotificationTemplateType.BOOKING_UPDATED_BY_GARAGE_OWNER, garage.owner_id
                )

        return booking

    @BaseService.measure_operation("change_booking_status")
    def change_status(self, ctx: RequestContext, data: BookingStatusChange) -> Booking:
        """
        Move a booking between non-terminal statuses.

        Rejecting a booking that came from a pre-booking reopens the
        pre-booking and cancels the bid it had selected. A booking leaving
        the rejected status takes its slots back, so they are re-checked.
        """
        self.log_operation(
            "change_booking_status",
            user_id=ctx.user_id,
            booking_id=data.id,
            garage_id=data.garage_id,
            status=data.status,
        )
        garage = self._authorize(ctx, PermissionName.BOOKING_UPDATE, data.garage_id)
        booking = self._get_scoped_booking(data.id, data.garage_id)
        self._ensure_mutable(booking)

        with slot_lock(self._slot_keys((booking.expert_id, booking.job_start_date))):
            with self.transaction():
                self.db.refresh(booking)
                self._ensure_mutable(booking)

                rejecting = data.status == BookingStatus.REJECTED_BY_GARAGE_OWNER.value
                if not booking.holds_slots and not rejecting:
                    self.slot_validator.ensure_available(
                        booking.id, booking.slot_list(), booking.job_start_date, booking.expert_id
                    )

                self.repository.update(booking, status=data.status)

                if rejecting:
                    self._reopen_pre_booking(booking)
                    template = NotificationTemplateType.BOOKING_REJECTED_BY_GARAGE_OWNER
                else:
                    template = NotificationTemplateType.BOOKING_STATUS_CHANGED_BY_GARAGE_OWNER
                self.notification_service.notify_customer(booking, template, garage.owner_id)

        return booking

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, ctx: RequestContext, data: BookingConfirm) -> Booking:
        """
        Confirm a booking and, for garage-owner bookings, convert it to a job.

        Only the schedule, price and owner discount fields present in the
        request are written. The final price is recomputed from the stored
        discounts. Customer-side bookings stay ``confirmed``.

        ``booked_slots`` are not touched: start and end times are the
        displayed schedule, the slots stay what the booking reserved. Slots
        are re-checked when the date moves or when the booking had released
        them by being rejected.

        Returns:
            The booking; ``converted_to_job`` when a job was created
        """
        self.log_operation(
            "confirm_booking", user_id=ctx.user_id, booking_id=data.id, garage_id=data.garage_id
        )
        garage = self._authorize(ctx, PermissionName.BOOKING_UPDATE, data.garage_id)
        booking = self._get_scoped_booking(data.id, data.garage_id)
        self._ensure_mutable(booking)

        changes: Dict[str, Any] = {
            key: getattr(data, key) for key in CONFIRMABLE_FIELDS if key in data.model_fields_set
        }
        if "discount_type" in changes:
            changes["discount_type"] = _discount_value(changes["discount_type"])
        new_date: date = changes.get("job_start_date") or booking.job_start_date

        lock_keys = self._slot_keys(
            (booking.expert_id, booking.job_start_date), (booking.expert_id, new_date)
        )
        with slot_lock(lock_keys):
            with self.transaction():
                self.db.refresh(booking)
                self._ensure_mutable(booking)
                if not booking.holds_slots or new_date != booking.job_start_date:
                    self.slot_validator.ensure_available(
                        booking.id, booking.slot_list(), new_date, booking.expert_id
                    )

                self.repository.update(booking, status=BookingStatus.CONFIRMED.value, **changes)
                booking.final_price = self._final_price_of(booking)
                self.repository.flush()

                self.notification_service.notify_customer(
                    booking,
                    NotificationTemplateType.BOOKING_CONFIRMED_BY_GARAGE_OWNER,
                    garage.owner_id,
                )

                if booking.created_from == BookingOrigin.GARAGE_OWNER_SIDE.value:
                    job = self._create_job_from(booking)
                    self.repository.update(booking, status=BookingStatus.CONVERTED_TO_JOB.value)
                    self.logger.info(f"Booking {booking.id} converted to job {job.id}")

        return booking

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, ctx: RequestContext, garage_id: str, booking_id: str) -> str:
        """
        Hard-delete a booking that has not been converted to a job.

        The deletion notification is written first and keeps the booking id
        as a plain reference.

        Returns:
            The deleted booking id
        """
        self.log_operation(
            "delete_booking", user_id=ctx.user_id, booking_id=booking_id, garage_id=garage_id
        )
        garage = self._authorize(ctx, PermissionName.BOOKING_DELETE, garage_id)
        booking = self._get_scoped_booking(booking_id, garage_id)
        self._ensure_mutable(booking)

        with self.transaction():
            self._reopen_pre_booking(booking)
            self.notification_service.notify_customer(
                booking, NotificationTemplateType.BOOKING_DELETED_BY_GARAGE_OWNER, garage.owner_id
            )
            self.repository.delete(booking)

        return booking_id

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self, ctx: RequestContext, garage_id: str, filters: Optional[BookingListFilters] = None
    ) -> BookingPage:
        """Bookings of the garage not yet converted to jobs, newest first."""
        self._authorize(ctx, PermissionName.BOOKING_VIEW, garage_id)
        filters = filters or BookingListFilters()
        per_page = min(filters.per_page or settings.default_per_page, settings.max_per_page)

        items, total = self.repository.list_for_garage(
            garage_id,
            search_key=filters.search_key,
            start_date=filters.start_date,
            end_date=filters.end_date,
            page=filters.page,
            per_page=per_page,
        )
        return BookingPage(items=items, total=total, page=filters.page, per_page=per_page)

    @BaseService.measure_operation("get_booking")
    def get_booking(self, ctx: RequestContext, garage_id: str, booking_id: str) -> Booking:
        """A single booking of the garage, including converted ones."""
        self._authorize(ctx, PermissionName.BOOKING_VIEW, garage_id)
        return self._get_scoped_booking(booking_id, garage_id)

    # Authorization and loading

    def _authorize(
        self, ctx: RequestContext, permission: PermissionName, garage_id: str
    ) -> Garage:
        """
        Check the permission, then that the caller owns the garage.

        Garage claims on the context narrow access further when present;
        ownership is always confirmed against the garage record.
        """
        if not ctx.has_permission(permission):
            raise UnauthorizedException(
                PERMISSION_DENIED_MESSAGE,
                code="PERMISSION_DENIED",
                details={"permission": permission.value},
            )

        garage = self.garage_repository.get_owned_garage(garage_id, ctx.user_id)
        if garage is None or (ctx.garage_ids and not ctx.owns_garage(garage_id)):
            raise UnauthorizedException(
                NOT_GARAGE_OWNER_MESSAGE,
                code="NOT_GARAGE_OWNER",
                details={"garage_id": garage_id},
            )
        return garage

    def _get_scoped_booking(self, booking_id: str, garage_id: str) -> Booking:
        booking = self.repository.get_for_garage(booking_id, garage_id)
        if booking is None:
            raise NotFoundException(
                BOOKING_NOT_FOUND_MESSAGE,
                code="BOOKING_NOT_FOUND",
                details={"booking_id": booking_id, "garage_id": garage_id},
            )
        return booking

    @staticmethod
    def _ensure_mutable(booking: Booking) -> None:
        if booking.is_converted:
            raise StateConflictException(booking.id)

    # Validation helpers

    def _validate_garage_times(self, garage_id: str, job_date: date, start_time: time) -> None:
        garage_time = self.garage_repository.get_garage_time(garage_id, garage_weekday(job_date))
        if garage_time is None or garage_time.is_closed:
            raise ValidationException.for_field(
                "job_start_date", "This garage is closed on the selected day"
            )
        if garage_time.opening_time is None or garage_time.closing_time is None:
            raise ValidationException.for_field(
                "job_start_date", "This garage has no opening hours on the selected day"
            )
        if not time_within(start_time, garage_time.opening_time, garage_time.closing_time):
            raise ValidationException.for_field(
                "job_start_time",
                "This garage is open from "
                f"{time_to_hhmm(garage_time.opening_time)} to {time_to_hhmm(garage_time.closing_time)}",
            )

    def _validate_make_and_model(
        self, garage_id: str, automobile_make_id: str, automobile_model_id: str
    ) -> None:
        garage_make = self.garage_repository.get_supported_make(garage_id, automobile_make_id)
        if garage_make is None:
            raise ValidationException.for_field(
                "automobile_make_id", "This garage does not support this make"
            )
        if self.garage_repository.get_supported_model(garage_make.id, automobile_model_id) is None:
            raise ValidationException.for_field(
                "automobile_model_id", "This garage does not support this model"
            )

    @staticmethod
    def _slot_keys(*pairs: Tuple[Optional[str], Optional[date]]) -> List[str]:
        return [
            slot_lock_key(expert_id, job_date)
            for expert_id, job_date in pairs
            if expert_id is not None and job_date is not None
        ]

    # Pricing helpers

    def _write_line_items(
        self,
        booking: Booking,
        sub_service_ids: Sequence[str],
        package_ids: Sequence[str],
        automobile_make_id: str,
    ) -> Decimal:
        """Replace line items and set ``booking.price`` to their sum."""
        sub_services = self.pricing_service.price_sub_services(
            booking.garage_id, sub_service_ids, automobile_make_id
        )
        packages = self.pricing_service.price_packages(booking.garage_id, package_ids)
        self.repository.replace_line_items(booking, sub_services, packages)
        booking.price = _sum_prices(sub_services, packages)
        return booking.price

    def _apply_coupon(self, booking: Booking, coupon_code: str, base: Decimal) -> None:
        resolution = self.pricing_service.resolve_coupon_discount(
            booking.garage_id, coupon_code, base
        )
        if not resolution.success:
            raise ValidationException.for_field(
                "coupon_code", resolution.message or "invalid coupon", code="INVALID_COUPON"
            )
        booking.coupon_code = coupon_code
        booking.coupon_discount_type = _discount_value(resolution.discount_type)
        booking.coupon_discount_amount = resolution.discount_amount

    def _final_price_of(self, booking: Booking) -> Decimal:
        return self.pricing_service.compose_final_price(
            booking.price,
            (booking.discount_type, booking.discount_amount),
            (booking.coupon_discount_type, booking.coupon_discount_amount),
        )

    # Side effects

    def _reopen_pre_booking(self, booking: Booking) -> None:
        if booking.pre_booking_id:
            self.pre_booking_repository.reopen(booking.pre_booking_id)

    def _create_job_from(self, booking: Booking) -> Job:
        return self.job_repository.create(
            booking_id=booking.id,
            garage_id=booking.garage_id,
            customer_id=booking.customer_id,
            automobile_make_id=booking.automobile_make_id,
            automobile_model_id=booking.automobile_model_id,
            car_registration_no=booking.car_registration_no,
            car_registration_year=booking.car_registration_year,
            additional_information=booking.additional_information,
            fuel=booking.fuel,
            transmission=booking.transmission,
            job_start_date=booking.job_start_date,
            job_start_time=booking.job_start_time,
            job_end_time=booking.job_end_time,
            price=booking.price,
            discount_type=booking.discount_type,
            discount_amount=booking.discount_amount,
            coupon_discount_type=booking.coupon_discount_type,
            coupon_discount_amount=booking.coupon_discount_amount,
            final_price=booking.final_price,
            status=JobStatus.PENDING.value,
            payment_status=JobPaymentStatus.DUE.value,
        )
