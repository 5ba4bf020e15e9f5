"""Shared test fixtures and helpers."""

from typing import Any, Optional

import pytest

from planbeau.booking.wizard import BookingWizard
from planbeau.schemas.booking_schema import BookingDraft, PackageItem, ServiceItem
from planbeau.schemas.vendor_schema import BusinessHours, VendorBooking
from planbeau.storage import InMemoryStorage

# June 2025: the 1st is a Sunday
MONDAY = "2025-06-16"
FRIDAY = "2025-06-13"
SATURDAY = "2025-06-14"
SUNDAY = "2025-06-15"


def make_hours(
    day: int,
    open_time: Any = "09:00:00",
    close_time: Any = "17:00:00",
    available: bool = True,
) -> BusinessHours:
    """Helper to create a BusinessHours row from a backend-shaped payload."""
    return BusinessHours.model_validate({
        "DayOfWeek": day,
        "OpenTime": open_time,
        "CloseTime": close_time,
        "IsAvailable": available,
    })


def make_service(
    name: str = "DJ Set",
    price: float = 50.0,
    pricing_model: str = "fixed_price",
    service_id: int = 1,
    **extra: Any,
) -> ServiceItem:
    """Helper to create a ServiceItem using the backend's field spellings."""
    return ServiceItem.model_validate({
        "ServiceID": service_id,
        "ServiceName": name,
        "VendorPrice": price,
        "PricingModel": pricing_model,
        **extra,
    })


def make_package(
    name: str = "Gold Package",
    price: float = 500.0,
    pricing_model: str = "fixed_price",
    package_id: int = 10,
    **extra: Any,
) -> PackageItem:
    """Helper to create a PackageItem using the backend's field spellings."""
    return PackageItem.model_validate({
        "PackageID": package_id,
        "PackageName": name,
        "Price": price,
        "PriceType": pricing_model,
        **extra,
    })


def make_booking(
    event_date: str = MONDAY,
    start: str = "12:00:00",
    end: str = "14:00:00",
    status: str = "confirmed",
) -> VendorBooking:
    return VendorBooking.model_validate({
        "EventDate": event_date,
        "EventTime": start,
        "EventEndTime": end,
        "Status": status,
    })


def make_draft(
    package: Optional[PackageItem] = None,
    services: Optional[list[ServiceItem]] = None,
    **overrides: Any,
) -> BookingDraft:
    """Helper to create a fully filled-in BookingDraft with sensible defaults."""
    fields: dict[str, Any] = {
        "event_name": "Sam & Alex Wedding",
        "event_type": "wedding",
        "event_date": MONDAY,
        "event_time": "18:00",
        "event_end_time": "21:00",
        "attendee_count": 30,
        "event_location": "100 Queen St W, Toronto, Ontario",
        "special_requests": "",
        "selected_package": package,
        "selected_services": services or [],
    }
    fields.update(overrides)
    return BookingDraft(**fields)


@pytest.fixture
def weekday_hours():
    """Open 9-5 Monday to Friday, closed Saturday, no Sunday row at all."""
    return [make_hours(day) for day in range(1, 6)] + [make_hours(6, available=False)]


@pytest.fixture
def overnight_hours():
    """Friday evening hours that run past midnight into Saturday."""
    return [
        make_hours(5, "18:00:00", "02:00:00"),
        make_hours(6, available=False),
    ]


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def wizard(weekday_hours):
    return BookingWizard(business_hours=weekday_hours)
