"""
Pytest configuration for the garage booking engine.

Every test gets its own in-memory SQLite database. Settings are pinned to
the test environment before any garage_booking import.
"""

import os

# Set test mode BEFORE any garage_booking imports
os.environ["GARAGE_ENVIRONMENT"] = "test"
os.environ["GARAGE_DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["GARAGE_REDIS_URL"] = ""
os.environ["GARAGE_NOTIFICATION_MISSING_TEMPLATE_FATAL"] = "false"

from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Dict, Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from garage_booking.core.enums import PermissionName
from garage_booking.core.ulid_helper import generate_ulid
from garage_booking.database import Base, build_engine
import garage_booking.models  # noqa: F401
from garage_booking.models import (
    Coupon,
    Garage,
    GarageAutomobileMake,
    GarageAutomobileModel,
    GaragePackage,
    GarageService,
    GarageSubService,
    GarageSubServicePrice,
    GarageTime,
    JobBid,
    JobBidStatus,
    NotificationTemplate,
    NotificationTemplateType,
    PreBooking,
    PreBookingStatus,
)
from garage_booking.principal import RequestContext

ALL_PERMISSIONS = [p.value for p in PermissionName]

# A Monday far enough ahead that coupon windows and "today" never interfere
JOB_DATE = date(2030, 1, 7)


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Generator[Session, None, None]:
    """Session bound to the per-test database."""
    TestingSessionLocal = sessionmaker(
        bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def garage_setup(db: Session) -> SimpleNamespace:
    """
    A garage open 08:00-18:00 every day with one supported make/model.

    Catalog:
        sub_service_id: 25.00 default, 20.00 for ``make_id``
        plain_sub_service_id: 15.00 default, no make price
        unpriced_sub_service_id: no price at all
        package: 30.00
    """
    owner_id = generate_ulid()
    garage = Garage(owner_id=owner_id, name="Downtown Garage")
    db.add(garage)
    db.flush()

    for day in range(7):
        db.add(
            GarageTime(
                garage_id=garage.id,
                day=day,
                opening_time=time(8, 0),
                closing_time=time(18, 0),
                is_closed=False,
            )
        )

    make_id = generate_ulid()
    model_id = generate_ulid()
    garage_make = GarageAutomobileMake(garage_id=garage.id, automobile_make_id=make_id)
    db.add(garage_make)
    db.flush()
    db.add(GarageAutomobileModel(garage_automobile_make_id=garage_make.id, automobile_model_id=model_id))

    garage_service = GarageService(garage_id=garage.id, service_id=generate_ulid())
    db.add(garage_service)
    db.flush()

    sub_service_id = generate_ulid()
    plain_sub_service_id = generate_ulid()
    unpriced_sub_service_id = generate_ulid()
    priced = GarageSubService(
        garage_service_id=garage_service.id, sub_service_id=sub_service_id, price=Decimal("25.00")
    )
    db.add_all(
        [
            priced,
            GarageSubService(
                garage_service_id=garage_service.id,
                sub_service_id=plain_sub_service_id,
                price=Decimal("15.00"),
            ),
            GarageSubService(
                garage_service_id=garage_service.id,
                sub_service_id=unpriced_sub_service_id,
                price=None,
            ),
        ]
    )
    db.flush()
    db.add(
        GarageSubServicePrice(
            garage_sub_service_id=priced.id, automobile_make_id=make_id, price=Decimal("20.00")
        )
    )

    package = GaragePackage(garage_id=garage.id, name="Full service", price=Decimal("30.00"))
    db.add(package)
    db.commit()

    ctx = RequestContext.build(user_id=owner_id, permissions=ALL_PERMISSIONS)
    return SimpleNamespace(
        owner_id=owner_id,
        garage=garage,
        garage_id=garage.id,
        make_id=make_id,
        model_id=model_id,
        sub_service_id=sub_service_id,
        plain_sub_service_id=plain_sub_service_id,
        unpriced_sub_service_id=unpriced_sub_service_id,
        package_id=package.id,
        ctx=ctx,
        customer_id=generate_ulid(),
        expert_id=generate_ulid(),
    )


@pytest.fixture
def notification_templates(db: Session) -> Dict[str, NotificationTemplate]:
    templates = {}
    for template_type in NotificationTemplateType:
        template = NotificationTemplate(
            type=template_type.value, template=f"{template_type.value} for {{booking_id}}"
        )
        db.add(template)
        templates[template_type.value] = template
    db.commit()
    return templates


@pytest.fixture
def make_coupon(db: Session, garage_setup: SimpleNamespace):
    def _make(**overrides: Any) -> Coupon:
        fields: Dict[str, Any] = {
            "garage_id": garage_setup.garage_id,
            "name": "Welcome",
            "code": "SAVE5",
            "discount_type": "flat",
            "discount_amount": Decimal("5.00"),
            "min_total": None,
            "max_total": None,
            "redemptions": None,
            "customer_redemptions": 0,
            "coupon_start_date": None,
            "coupon_end_date": None,
            "is_active": True,
        }
        fields.update(overrides)
        coupon = Coupon(**fields)
        db.add(coupon)
        db.commit()
        return coupon

    return _make


@pytest.fixture
def pre_booking_with_bid(db: Session, garage_setup: SimpleNamespace) -> SimpleNamespace:
    """A pre-booking already booked through an accepted bid of ``garage_setup``."""
    pre_booking = PreBooking(customer_id=garage_setup.customer_id, status=PreBookingStatus.BOOKED.value)
    db.add(pre_booking)
    db.flush()
    bid = JobBid(
        pre_booking_id=pre_booking.id,
        garage_id=garage_setup.garage_id,
        price=Decimal("50.00"),
        status=JobBidStatus.ACCEPTED.value,
    )
    db.add(bid)
    db.flush()
    pre_booking.selected_bid_id = bid.id
    db.commit()
    return SimpleNamespace(pre_booking=pre_booking, bid=bid)


@pytest.fixture
def booking_payload(garage_setup: SimpleNamespace):
    """Builds BookingCreate kwargs: sub-service 20.00 + package 30.00, 09:00-10:00."""

    def _payload(**overrides: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "garage_id": garage_setup.garage_id,
            "customer_id": garage_setup.customer_id,
            "automobile_make_id": garage_setup.make_id,
            "automobile_model_id": garage_setup.model_id,
            "car_registration_no": "AB12 CDE",
            "car_registration_year": 2019,
            "fuel": "petrol",
            "transmission": "manual",
            "job_start_date": JOB_DATE.isoformat(),
            "job_start_time": "09:00",
            "job_end_time": "10:00",
            "expert_id": garage_setup.expert_id,
            "booked_slots": [{"start_time": "09:00", "end_time": "10:00"}],
            "booking_sub_service_ids": [garage_setup.sub_service_id],
            "booking_garage_package_ids": [garage_setup.package_id],
        }
        payload.update(overrides)
        return payload

    return _payload
