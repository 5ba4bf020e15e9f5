"""Vendor profile, business hours and calendar data models."""

from datetime import date
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator

from planbeau.schemas.base import PayloadModel, coerce_id
from planbeau.utils import parse_date

ACTIVE_BOOKING_STATUSES = frozenset({"confirmed", "pending", "paid", "approved"})


class VendorProfile(PayloadModel):
    """Read-only vendor identity, location and booking policy."""
    id: Optional[str] = Field(
        None, validation_alias=AliasChoices("VendorProfileID", "vendorProfileId", "id")
    )
    business_name: str = Field(
        "Vendor", validation_alias=AliasChoices("BusinessName", "Name", "businessName")
    )
    city: str = Field("", validation_alias=AliasChoices("City", "city"))
    province: str = Field(
        "",
        validation_alias=AliasChoices("State", "state", "Province", "province", "StateProvince"),
    )
    latitude: Optional[float] = Field(
        None, validation_alias=AliasChoices("Latitude", "latitude", "lat")
    )
    longitude: Optional[float] = Field(
        None, validation_alias=AliasChoices("Longitude", "longitude", "lng")
    )
    instant_booking_enabled: bool = Field(
        False, validation_alias=AliasChoices("InstantBookingEnabled", "instantBookingEnabled")
    )
    min_booking_lead_time_hours: int = Field(
        0,
        validation_alias=AliasChoices("MinBookingLeadTimeHours", "minBookingLeadTimeHours"),
    )
    cancellation_policy_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("CancellationPolicyID", "cancellationPolicyId")
    )
    time_zone: str = Field(
        "America/Toronto", validation_alias=AliasChoices("TimeZone", "timeZone")
    )

    @field_validator("id", "cancellation_policy_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return coerce_id(value)


class BusinessHours(PayloadModel):
    """
    Opening hours for one day of the week.

    ``day_of_week`` uses 0=Sunday..6=Saturday, though some stores write
    Sunday as 7. Open and close times stay raw here; they are parsed
    where slots are generated.
    """
    day_of_week: int = Field(validation_alias=AliasChoices("DayOfWeek", "dayOfWeek"))
    open_time: Optional[Any] = Field(None, validation_alias=AliasChoices("OpenTime", "openTime"))
    close_time: Optional[Any] = Field(
        None, validation_alias=AliasChoices("CloseTime", "closeTime")
    )
    is_available: bool = Field(
        False, validation_alias=AliasChoices("IsAvailable", "isAvailable")
    )


class VendorBooking(PayloadModel):
    """An existing booking that blocks part of a vendor's calendar."""
    event_date: Optional[Any] = Field(
        None, validation_alias=AliasChoices("EventDate", "eventDate")
    )
    event_time: Optional[Any] = Field(
        None, validation_alias=AliasChoices("EventTime", "eventTime")
    )
    event_end_time: Optional[Any] = Field(
        None, validation_alias=AliasChoices("EventEndTime", "eventEndTime")
    )
    status: str = Field("", validation_alias=AliasChoices("Status", "status"))

    @property
    def event_day(self) -> Optional[date]:
        return parse_date(self.event_date)

    @property
    def is_active(self) -> bool:
        return self.status.lower() in ACTIVE_BOOKING_STATUSES


class AvailabilityException(PayloadModel):
    """A one-off override of the weekly hours, e.g. a holiday closure."""
    exception_date: Optional[Any] = Field(
        None, validation_alias=AliasChoices("Date", "date")
    )
    is_available: bool = Field(
        False, validation_alias=AliasChoices("IsAvailable", "isAvailable")
    )

    @property
    def day(self) -> Optional[date]:
        return parse_date(self.exception_date)
