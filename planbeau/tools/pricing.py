"""
Booking price calculator.

Turns the selected package and services, the event time window and the
event location into a price breakdown: subtotal, platform fee, provincial
sales tax, card processing fee and grand total. The same numbers are shown
in the checkout sidebar and sent to the backend, which does not recalculate.
"""

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Optional

from planbeau.config import settings
from planbeau.schemas.booking_schema import (
    BookingDraft,
    PackageItem,
    PricedService,
    PriceBreakdown,
    ServiceItem,
    TaxInfo,
)
from planbeau.utils import time_to_minutes

logger = logging.getLogger(__name__)

# Card processor fee, frozen at the processor's published rate
PROCESSING_FEE_PERCENT = 0.029
PROCESSING_FEE_FIXED = 0.30

PROVINCE_TAX_RATES: dict[str, TaxInfo] = {
    "Ontario": TaxInfo(rate=13, type="HST", label="HST 13%"),
    "Quebec": TaxInfo(rate=14.975, type="GST+QST", label="GST+QST 14.975%"),
    "British Columbia": TaxInfo(rate=12, type="GST+PST", label="GST+PST 12%"),
    "Alberta": TaxInfo(rate=5, type="GST", label="GST 5%"),
    "Manitoba": TaxInfo(rate=12, type="GST+PST", label="GST+PST 12%"),
    "Saskatchewan": TaxInfo(rate=11, type="GST+PST", label="GST+PST 11%"),
    "Nova Scotia": TaxInfo(rate=15, type="HST", label="HST 15%"),
    "New Brunswick": TaxInfo(rate=15, type="HST", label="HST 15%"),
    "Newfoundland and Labrador": TaxInfo(rate=15, type="HST", label="HST 15%"),
    "Prince Edward Island": TaxInfo(rate=15, type="HST", label="HST 15%"),
    "Northwest Territories": TaxInfo(rate=5, type="GST", label="GST 5%"),
    "Yukon": TaxInfo(rate=5, type="GST", label="GST 5%"),
    "Nunavut": TaxInfo(rate=5, type="GST", label="GST 5%"),
}

PROVINCE_ABBREVIATIONS: dict[str, str] = {
    "AB": "Alberta",
    "BC": "British Columbia",
    "MB": "Manitoba",
    "NB": "New Brunswick",
    "NL": "Newfoundland and Labrador",
    "NT": "Northwest Territories",
    "NS": "Nova Scotia",
    "NU": "Nunavut",
    "ON": "Ontario",
    "PE": "Prince Edward Island",
    "QC": "Quebec",
    "SK": "Saskatchewan",
    "YT": "Yukon",
}

# Checked before abbreviations and province names since a city is the most specific hint
CITY_TO_PROVINCE: dict[str, str] = {
    "TORONTO": "Ontario", "OTTAWA": "Ontario", "MISSISSAUGA": "Ontario",
    "BRAMPTON": "Ontario", "HAMILTON": "Ontario", "LONDON": "Ontario",
    "MARKHAM": "Ontario", "VAUGHAN": "Ontario", "KITCHENER": "Ontario",
    "WINDSOR": "Ontario", "SCARBOROUGH": "Ontario", "NORTH YORK": "Ontario",
    "ETOBICOKE": "Ontario", "OAKVILLE": "Ontario", "BURLINGTON": "Ontario",
    "MONTREAL": "Quebec", "QUEBEC CITY": "Quebec", "LAVAL": "Quebec",
    "GATINEAU": "Quebec", "LONGUEUIL": "Quebec",
    "VANCOUVER": "British Columbia", "SURREY": "British Columbia",
    "BURNABY": "British Columbia", "RICHMOND": "British Columbia",
    "VICTORIA": "British Columbia", "KELOWNA": "British Columbia",
    "WEST VANCOUVER": "British Columbia", "COQUITLAM": "British Columbia",
    "CALGARY": "Alberta", "EDMONTON": "Alberta", "RED DEER": "Alberta",
    "LETHBRIDGE": "Alberta", "BANFF": "Alberta",
    "WINNIPEG": "Manitoba", "BRANDON": "Manitoba",
    "SASKATOON": "Saskatchewan", "REGINA": "Saskatchewan",
    "HALIFAX": "Nova Scotia", "DARTMOUTH": "Nova Scotia",
    "SAINT JOHN": "New Brunswick", "MONCTON": "New Brunswick",
    "FREDERICTON": "New Brunswick",
    "ST. JOHN'S": "Newfoundland and Labrador",
    "CORNER BROOK": "Newfoundland and Labrador",
    "CHARLOTTETOWN": "Prince Edward Island",
    "YELLOWKNIFE": "Northwest Territories",
    "WHITEHORSE": "Yukon",
    "IQALUIT": "Nunavut",
}

_ABBREVIATION_PATTERNS = {
    abbr: re.compile(rf"\b{abbr}\b") for abbr in PROVINCE_ABBREVIATIONS
}


def get_province_from_location(location: Optional[str], default: Optional[str] = None) -> str:
    """
    Best-effort province lookup from a free-text event location.

    Tries city names, then two-letter abbreviations on word boundaries,
    then full province names. Anything unmatched falls back to the
    configured default province.
    """
    fallback = default or settings.pricing.default_province
    if not location:
        return fallback

    upper = location.upper()
    for city, province in CITY_TO_PROVINCE.items():
        if city in upper:
            return province
    for abbr, province in PROVINCE_ABBREVIATIONS.items():
        if _ABBREVIATION_PATTERNS[abbr].search(upper):
            return province
    for province in PROVINCE_ABBREVIATIONS.values():
        if province.upper() in upper:
            return province

    logger.debug("No province matched in '%s', using %s", location, fallback)
    return fallback


def get_tax_info_for_province(province: Optional[str]) -> TaxInfo:
    """Tax rate and label for a province; unknown names use the default province."""
    default_info = PROVINCE_TAX_RATES[settings.pricing.default_province]
    if not province:
        return default_info
    return PROVINCE_TAX_RATES.get(province.strip(), default_info)


def calculate_hours(start: Optional[str], end: Optional[str]) -> float:
    """Hours between two ``HH:MM`` times on the same day. Zero when not positive."""
    start_mins = time_to_minutes(start)
    end_mins = time_to_minutes(end)
    if start_mins is None or end_mins is None:
        return 0.0
    diff = end_mins - start_mins
    return diff / 60 if diff > 0 else 0.0


def price_service(service: ServiceItem, hours: float) -> float:
    """
    Price one service for the chosen window.

    Hourly services multiply by hours only when a positive duration is
    known, otherwise the raw hourly rate is used. Per-person services are
    shown at their stored unit price.
    """
    if service.pricing_model.is_hourly and hours > 0:
        return service.price * hours
    return service.price


def price_package(package: Optional[PackageItem], hours: float) -> float:
    """Price the selected package with the same hourly rule as services."""
    if package is None:
        return 0.0
    base = package.effective_price
    if package.pricing_model.is_hourly and hours > 0:
        return base * hours
    return base


def calculate_booking_fees(
    subtotal: float,
    event_location: Optional[str],
    platform_fee_percent: Optional[float] = None,
    processing_fee_percent: Optional[float] = None,
    processing_fee_fixed: Optional[float] = None,
) -> dict[str, Any]:
    """
    Compute fees, tax and total for a subtotal. Percentages are whole numbers.

    Any fee argument left as None or 0 falls back to the configured value.
    This is the only calculation that reads the processing fee from
    settings; ``calculate_booking_totals`` uses the frozen card rate.
    """
    platform_pct = platform_fee_percent or settings.pricing.platform_fee_percent
    processing_pct = processing_fee_percent or settings.pricing.processing_fee_percent
    processing_fixed = processing_fee_fixed or settings.pricing.processing_fee_fixed

    province = get_province_from_location(event_location)
    tax_info = get_tax_info_for_province(province)

    platform_fee = subtotal * platform_pct / 100
    tax = (subtotal + platform_fee) * tax_info.rate / 100
    processing_fee = subtotal * processing_pct / 100 + processing_fixed
    return {
        "subtotal": subtotal,
        "platform_fee": platform_fee,
        "platform_fee_percent": platform_pct,
        "tax": tax,
        "tax_info": tax_info,
        "tax_percent": tax_info.rate,
        "province": province,
        "processing_fee": processing_fee,
        "processing_fee_percent": processing_pct,
        "processing_fee_fixed": processing_fixed,
        "total": subtotal + platform_fee + tax + processing_fee,
    }


def calculate_booking_totals(
    services: Iterable[ServiceItem],
    package: Optional[PackageItem],
    start_time: Optional[str],
    end_time: Optional[str],
    event_location: Optional[str],
    platform_fee_percent: Optional[float] = None,
) -> PriceBreakdown:
    """
    Compute the full price breakdown for a booking selection.

    Deterministic and side-effect free. The processing fee always uses
    the frozen 2.9% + $0.30 card rate (``PROCESSING_FEE_PERCENT`` and
    ``PROCESSING_FEE_FIXED``), matching what checkout charges. The
    PROCESSING_FEE_* environment settings do not apply here.
    """
    hours = calculate_hours(start_time, end_time)

    priced_services = [
        PricedService(
            service=service,
            calculated_price=price_service(service, hours),
            hours=hours if service.pricing_model.is_hourly else None,
        )
        for service in services
    ]
    services_subtotal = sum(p.calculated_price for p in priced_services)
    package_price = price_package(package, hours)
    subtotal = services_subtotal + package_price

    fee_percent = platform_fee_percent or settings.pricing.platform_fee_percent
    platform_fee = subtotal * (fee_percent / 100)

    province = get_province_from_location(event_location)
    tax_info = get_tax_info_for_province(province)
    tax_amount = (subtotal + platform_fee) * (tax_info.rate / 100)

    processing_fee = subtotal * PROCESSING_FEE_PERCENT + PROCESSING_FEE_FIXED
    total = subtotal + platform_fee + tax_amount + processing_fee

    logger.debug(
        "Booking totals: subtotal=%.2f fee=%.2f tax=%.2f (%s) processing=%.2f total=%.2f",
        subtotal, platform_fee, tax_amount, tax_info.label, processing_fee, total,
    )
    return PriceBreakdown(
        total_hours=hours,
        services_subtotal=services_subtotal,
        package_price=package_price,
        subtotal=subtotal,
        platform_fee_percent=fee_percent,
        platform_fee=platform_fee,
        province=province,
        tax_info=tax_info,
        tax_amount=tax_amount,
        processing_fee=processing_fee,
        total=total,
        priced_services=priced_services,
    )


def calculate_draft_totals(
    draft: BookingDraft, platform_fee_percent: Optional[float] = None
) -> PriceBreakdown:
    """Price breakdown for everything currently selected in a booking draft."""
    return calculate_booking_totals(
        draft.selected_services,
        draft.selected_package,
        draft.event_time,
        draft.event_end_time,
        draft.event_location,
        platform_fee_percent=platform_fee_percent,
    )


def _with_seconds(value: str) -> Optional[str]:
    return f"{value}:00" if value else None


def build_booking_payload(
    draft: BookingDraft,
    breakdown: PriceBreakdown,
    vendor_id: str,
    user_id: str,
    time_zone: Optional[str] = None,
) -> dict[str, Any]:
    """
    JSON body for a booking request or instant booking.

    Carries every computed amount so the backend stores what the visitor saw.
    """
    package = draft.selected_package
    return {
        "userId": user_id,
        "vendorProfileId": vendor_id,
        "eventName": draft.event_name,
        "eventType": draft.event_type,
        "eventDate": draft.event_date,
        "eventTime": _with_seconds(draft.event_time),
        "eventEndTime": _with_seconds(draft.event_end_time),
        "eventLocation": draft.event_location,
        "attendeeCount": draft.attendee_count,
        "services": [
            {
                "id": p.service.id,
                "name": p.service.name,
                "price": p.service.price,
                "pricingModel": p.service.pricing_model.value,
                "calculatedPrice": p.calculated_price,
                "hours": p.hours,
            }
            for p in breakdown.priced_services
        ],
        "packageId": package.id if package else None,
        "packageName": package.name if package else None,
        "packagePrice": breakdown.package_price or None,
        "budget": breakdown.subtotal,
        "specialRequestText": draft.special_requests,
        "timeZone": time_zone or datetime.now().astimezone().tzname(),
        "subtotal": breakdown.subtotal,
        "platformFee": breakdown.platform_fee,
        "taxAmount": breakdown.tax_amount,
        "taxPercent": breakdown.tax_info.rate,
        "taxLabel": breakdown.tax_label,
        "processingFee": breakdown.processing_fee,
        "grandTotal": breakdown.total,
    }
