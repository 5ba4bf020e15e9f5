"""
Location formatting for display and search.

Every location shown to a visitor uses the short "City, XX" form
(e.g. "Toronto, ON") with no country, whether it came from Google Places,
IP geolocation or a stored profile.
"""

import logging
import re
from typing import Any, Mapping, Optional, TypedDict

logger = logging.getLogger(__name__)

PROVINCE_CODES: dict[str, str] = {
    "alberta": "AB",
    "british columbia": "BC",
    "manitoba": "MB",
    "new brunswick": "NB",
    "newfoundland and labrador": "NL",
    "newfoundland": "NL",
    "northwest territories": "NT",
    "nova scotia": "NS",
    "nunavut": "NU",
    "ontario": "ON",
    "prince edward island": "PE",
    "quebec": "QC",
    "saskatchewan": "SK",
    "yukon": "YT",
}

_SHORT_CODE = re.compile(r"^[A-Z]{2}$")
_NORMALIZED = re.compile(r"^[^,]+,\s*[A-Z]{2}$")


class AddressComponents(TypedDict):
    """Address parts pulled from a Google Places result."""

    street_number: str
    route: str
    full_address: str
    city: str
    province: str
    province_short: str
    country: str
    postal_code: str
    latitude: Optional[float]
    longitude: Optional[float]
    formatted_location: str


class IpLocation(TypedDict):
    """Approximate visitor location from an IP lookup."""

    city: str
    region: str
    lat: Optional[float]
    lng: Optional[float]
    formatted_location: str


def province_code(province: str) -> str:
    """Two-letter code for a full province name; other values pass through."""
    return PROVINCE_CODES.get(province.strip().lower(), province)


def normalize_location(location: Optional[str]) -> str:
    """
    Normalize a location string to "City, XX".

    Examples:
        >>> normalize_location("Toronto, Ontario, Canada")
        'Toronto, ON'
        >>> normalize_location("Calgary, AB")
        'Calgary, AB'
    """
    if not location:
        return ""
    parts = [p.strip() for p in location.split(",") if p.strip()]
    if len(parts) == 2 and _SHORT_CODE.match(parts[1]):
        return location.strip()
    if len(parts) >= 2:
        return f"{parts[0]}, {province_code(parts[1])}"
    return location


def _find_component(
    components: list[Mapping[str, Any]], component_type: str, key: str = "long_name"
) -> str:
    for component in components:
        if component_type in component.get("types", []):
            return component.get(key) or ""
    return ""


def format_from_google_place(
    address_components: Optional[list[Mapping[str, Any]]], fallback_name: str = ""
) -> str:
    """City and province short code from Google Places ``address_components``."""
    if not isinstance(address_components, list):
        return fallback_name or ""
    city = (
        _find_component(address_components, "locality")
        or _find_component(address_components, "sublocality")
        or _find_component(address_components, "postal_town")
        or fallback_name
    )
    province = _find_component(address_components, "administrative_area_level_1", "short_name")
    return ", ".join(p for p in (city, province) if p) or fallback_name


def _coordinate(value: Any) -> Optional[float]:
    if callable(value):
        value = value()
    return float(value) if value is not None else None


def extract_address_components(place: Optional[Mapping[str, Any]]) -> AddressComponents:
    """Break a Google Places result into form-ready address fields."""
    if not place or not place.get("address_components"):
        return {
            "street_number": "",
            "route": "",
            "full_address": "",
            "city": "",
            "province": "",
            "province_short": "",
            "country": "Canada",
            "postal_code": "",
            "latitude": None,
            "longitude": None,
            "formatted_location": "",
        }

    components = place["address_components"]
    street_number = _find_component(components, "street_number")
    route = _find_component(components, "route")
    city = (
        _find_component(components, "locality")
        or _find_component(components, "sublocality")
        or _find_component(components, "postal_town")
    )
    province_short = _find_component(components, "administrative_area_level_1", "short_name")

    location = (place.get("geometry") or {}).get("location")
    latitude = _coordinate(location.get("lat")) if location else None
    longitude = _coordinate(location.get("lng")) if location else None

    if street_number and route:
        full_address = f"{street_number} {route}"
    else:
        full_address = place.get("formatted_address") or ""

    return {
        "street_number": street_number,
        "route": route,
        "full_address": full_address,
        "city": city,
        "province": _find_component(components, "administrative_area_level_1"),
        "province_short": province_short,
        "country": _find_component(components, "country") or "Canada",
        "postal_code": _find_component(components, "postal_code"),
        "latitude": latitude,
        "longitude": longitude,
        "formatted_location": ", ".join(p for p in (city, province_short) if p),
    }


def event_location_from_place(place: Mapping[str, Any]) -> str:
    """Street address plus "City, XX" for the booking form's event location."""
    extracted = extract_address_components(place)
    if extracted["full_address"]:
        return f"{extracted['full_address']}, {extracted['formatted_location']}"
    return extracted["formatted_location"] or place.get("formatted_address", "")


def parse_ip_geolocation_response(
    data: Optional[Mapping[str, Any]], service: str = "ipwho"
) -> Optional[IpLocation]:
    """
    Parse an IP geolocation payload from ipwho.is or the backend proxy.

    Prefers the region code (ON) over the region name (Ontario).
    """
    if not data:
        return None

    if service == "ipwho" or "success" in data:
        if not data.get("success") or not data.get("city"):
            logger.debug("IP geolocation lookup failed: %s", data.get("message", "no city"))
            return None
        lat, lng = data.get("latitude"), data.get("longitude")
    elif data.get("city"):
        lat, lng = data.get("lat"), data.get("lng")
    else:
        return None

    region = data.get("region_code") or data.get("region") or ""
    return {
        "city": data["city"],
        "region": region,
        "lat": lat,
        "lng": lng,
        "formatted_location": f"{data['city']}, {region}",
    }


def format_service_area(area: Any) -> str:
    """Display form of a vendor service area given as a string or a mapping."""
    if not area:
        return ""
    if isinstance(area, str):
        return normalize_location(area)

    city = area.get("city") or area.get("CityName") or area.get("name") or ""
    province = (
        area.get("provinceShort")
        or area.get("province")
        or area.get("StateProvince")
        or area.get("state")
        or ""
    )
    if city and province:
        return f"{city}, {province_code(province)}"
    return area.get("formattedAddress") or city or ""


def is_normalized_location(location: Optional[str]) -> bool:
    if not location:
        return False
    return bool(_NORMALIZED.match(location.strip()))


def get_profile_location(profile: Optional[Mapping[str, Any]]) -> str:
    """Short "City, XX" location from a stored profile's city and state/province fields."""
    if not profile:
        return ""
    city = profile.get("City") or profile.get("city") or ""
    state = (
        profile.get("State")
        or profile.get("state")
        or profile.get("Province")
        or profile.get("province")
        or ""
    )
    if not city and not state:
        return ""
    return ", ".join(p for p in (city, province_code(state) if state else "") if p)


def get_service_area_location(area: Optional[Mapping[str, Any]]) -> str:
    """Short "City, XX" location from a service area record; empty without a city."""
    if not area:
        return ""
    city = area.get("CityName") or area.get("city") or area.get("name") or ""
    if not city:
        return ""
    province = area.get("StateProvince") or area.get("province") or area.get("state") or ""
    return ", ".join(p for p in (city, province_code(province) if province else "") if p)
