"""Service, package, booking draft and price breakdown data models."""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from planbeau.schemas.base import PayloadModel, coerce_id


class PricingModel(str, Enum):
    """How an offering's price relates to duration and guest count."""

    FIXED_PRICE = "fixed_price"
    TIME_BASED = "time_based"
    HOURLY = "hourly"
    PER_ATTENDEE = "per_attendee"
    PER_PERSON = "per_person"

    @property
    def is_hourly(self) -> bool:
        return self in (PricingModel.TIME_BASED, PricingModel.HOURLY)

    @property
    def is_per_attendee(self) -> bool:
        return self in (PricingModel.PER_ATTENDEE, PricingModel.PER_PERSON)

    @classmethod
    def parse(cls, value: Any) -> "PricingModel":
        """Map a raw tag to a pricing model; unknown tags are fixed price."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.FIXED_PRICE


_MIN_ATTENDEE_ALIASES = AliasChoices(
    "MinAttendees", "minAttendees", "MinimumAttendees", "minimumAttendees"
)
_MAX_ATTENDEE_ALIASES = AliasChoices(
    "MaxAttendees", "maxAttendees", "MaximumAttendees", "maximumAttendees"
)


class ServiceItem(PayloadModel):
    """A single priced service a vendor offers."""
    id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "ServiceID",
            "VendorServiceID",
            "PredefinedServiceID",
            "VendorSelectedServiceID",
            "id",
        ),
    )
    name: str = Field("", validation_alias=AliasChoices("ServiceName", "serviceName", "name"))
    price: float = Field(
        0.0,
        validation_alias=AliasChoices(
            "VendorPrice", "Price", "BasePrice", "baseRate", "fixedPrice", "price"
        ),
    )
    pricing_model: PricingModel = Field(
        PricingModel.FIXED_PRICE, validation_alias=AliasChoices("PricingModel", "pricingModel")
    )
    min_attendees: Optional[int] = Field(None, validation_alias=_MIN_ATTENDEE_ALIASES)
    max_attendees: Optional[int] = Field(None, validation_alias=_MAX_ATTENDEE_ALIASES)
    duration_minutes: Optional[int] = Field(
        None,
        validation_alias=AliasChoices(
            "DurationMinutes", "VendorDurationMinutes", "baseDuration", "vendorDuration"
        ),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id(value)

    @field_validator("pricing_model", mode="before")
    @classmethod
    def _parse_pricing_model(cls, value: Any) -> PricingModel:
        return PricingModel.parse(value)


class PackageItem(PayloadModel):
    """A bundled offering with an optional sale price."""
    id: Optional[str] = Field(
        None, validation_alias=AliasChoices("PackageID", "packageId", "id")
    )
    name: str = Field("", validation_alias=AliasChoices("PackageName", "name"))
    price: Optional[float] = Field(None, validation_alias=AliasChoices("Price", "price"))
    sale_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("SalePrice", "salePrice")
    )
    base_rate: Optional[float] = Field(
        None, validation_alias=AliasChoices("BaseRate", "baseRate")
    )
    pricing_model: PricingModel = Field(
        PricingModel.FIXED_PRICE,
        validation_alias=AliasChoices("PriceType", "priceType", "PricingModel", "pricingModel"),
    )
    min_attendees: Optional[int] = Field(None, validation_alias=_MIN_ATTENDEE_ALIASES)
    max_attendees: Optional[int] = Field(None, validation_alias=_MAX_ATTENDEE_ALIASES)
    duration_minutes: Optional[int] = Field(
        None, validation_alias=AliasChoices("DurationMinutes", "Duration", "duration")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id(value)

    @field_validator("pricing_model", mode="before")
    @classmethod
    def _parse_pricing_model(cls, value: Any) -> PricingModel:
        return PricingModel.parse(value)

    @property
    def effective_price(self) -> float:
        """Sale price when set and below the list price, else base rate or price."""
        if self.sale_price and self.price is not None and self.sale_price < self.price:
            return self.sale_price
        return self.base_rate or self.price or 0.0


class BookingDraft(BaseModel):
    """
    The visitor's in-progress booking.

    Lives only in wizard state until it is submitted. Assignments are
    validated so form input like ``"12"`` lands as an int.
    """
    model_config = ConfigDict(validate_assignment=True)

    event_name: str = ""
    event_type: str = ""
    event_date: str = ""
    event_time: str = ""
    event_end_time: str = ""
    attendee_count: int = 0
    event_location: str = ""
    special_requests: str = ""
    selected_package: Optional[PackageItem] = None
    selected_services: list[ServiceItem] = Field(default_factory=list)

    @field_validator("attendee_count", mode="before")
    @classmethod
    def _parse_attendees(cls, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0


class TaxInfo(BaseModel):
    """Sales tax for one province. ``rate`` is a percentage."""
    rate: float
    type: str
    label: str


class PricedService(BaseModel):
    """A selected service with its price for the chosen time window."""
    service: ServiceItem
    calculated_price: float
    hours: Optional[float] = None


class PriceBreakdown(BaseModel):
    """Derived booking totals. Never persisted client-side."""
    total_hours: float = 0.0
    services_subtotal: float = 0.0
    package_price: float = 0.0
    subtotal: float = 0.0
    platform_fee_percent: float = 0.0
    platform_fee: float = 0.0
    province: str = ""
    tax_info: TaxInfo
    tax_amount: float = 0.0
    processing_fee: float = 0.0
    total: float = 0.0
    priced_services: list[PricedService] = Field(default_factory=list)

    @property
    def tax_label(self) -> str:
        return self.tax_info.label
